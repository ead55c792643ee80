import pytest

import melodykeys.config
import melodykeys.timeline


def test_missing_file_uses_defaults (tmp_path) -> None:

	"""A missing config file gives the default settings."""

	settings = melodykeys.config.load_config(str(tmp_path / "nope.yaml"))

	assert settings == melodykeys.config.Settings()
	assert settings.resolution == 10
	assert settings.bpm == 120
	assert settings.chord_timing is melodykeys.timeline.ChordTiming.LAST_NOTE


def test_load_yaml (tmp_path) -> None:

	"""Values are read from the midi and sequencer sections."""

	path = tmp_path / "melodykeys.yaml"
	path.write_text(
		"midi:\n"
		"  device_name: Synth Port\n"
		"  channel: 9\n"
		"  velocity: 100\n"
		"sequencer:\n"
		"  resolution: 480\n"
		"  bpm: 96\n"
		"  chord_timing: longest_note\n"
	)

	settings = melodykeys.config.load_config(str(path))

	assert settings.device_name == "Synth Port"
	assert settings.channel == 9
	assert settings.velocity == 100
	assert settings.resolution == 480
	assert settings.bpm == 96.0
	assert settings.chord_timing is melodykeys.timeline.ChordTiming.LONGEST_NOTE

	channel = settings.channel_state()

	assert (channel.num, channel.velocity, channel.reverb) == (9, 100, 64)


def test_empty_file_uses_defaults (tmp_path) -> None:

	"""An empty YAML document is the same as no settings."""

	path = tmp_path / "empty.yaml"
	path.write_text("")

	assert melodykeys.config.load_config(str(path)) == melodykeys.config.Settings()


@pytest.mark.parametrize("config", [
	{"sequencer": {"chord_timing": "first_note"}},
	{"sequencer": {"resolution": 0}},
	{"sequencer": {"bpm": -1}},
	{"midi": {"channel": 16}},
	{"midi": {"velocity": 128}},
	{"midi": {"channel": None}},
	{"midi": {"velocity": "loud"}},
	{"midi": [1, 2]},
	{"sequencer": "fast"},
])
def test_invalid_values_raise (config: dict) -> None:

	"""Unusable values are rejected with ValueError."""

	with pytest.raises(ValueError):
		melodykeys.config.Settings.from_dict(config)


def test_null_channel_raises_value_error (tmp_path) -> None:

	"""A key present with no value is rejected rather than crashing in int()."""

	path = tmp_path / "melodykeys.yaml"
	path.write_text("midi:\n  channel:\n")

	with pytest.raises(ValueError):
		melodykeys.config.load_config(str(path))


def test_unparseable_file_raises_value_error (tmp_path) -> None:

	"""Broken YAML is reported as ValueError naming the file."""

	path = tmp_path / "melodykeys.yaml"
	path.write_text("midi: [unclosed\n")

	with pytest.raises(ValueError, match="melodykeys.yaml"):
		melodykeys.config.load_config(str(path))


def test_top_level_list_raises_value_error (tmp_path) -> None:

	"""A config file must hold a mapping."""

	path = tmp_path / "melodykeys.yaml"
	path.write_text("- midi\n- sequencer\n")

	with pytest.raises(ValueError):
		melodykeys.config.load_config(str(path))
