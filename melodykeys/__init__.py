"""
melodykeys - piano keyboard melody notation, compiled and played over MIDI.

A melody search front end lets people type (or play) a short tune.  This
package is the part that understands what they wrote:

- **Notation.** ``melodykeys.notation.parse("4c5+4e5 2g5")`` reads the
  compact ``[duration]letter[#][octave]`` notation into chords of tagged
  notes.  Mistakes never raise - they are defaulted or marked unplayable.
- **Timelines.** ``melodykeys.timeline.build()`` turns chords into a
  tick-ordered list of note on/off events, ready for a sequencer or a
  standard MIDI file.
- **Playback.** ``PlaybackScheduler`` starts a sequencing device, disables
  the play control, and re-enables it when the device reports the end of
  the track - even if that report arrives on another thread.
- **Keyboard.** ``KeyboardInputController`` maps key regions to pitches,
  sounds notes immediately and records each press as a quarter note in the
  shared notation buffer.

Minimal example:

    ```python
    import asyncio
    import melodykeys

    async def main ():
        control = melodykeys.ToggleControl()
        scheduler = melodykeys.PlaybackScheduler(control, loop=asyncio.get_running_loop())
        timeline = melodykeys.compile_notation("4c5 4e5 2g5")
        if scheduler.play(timeline, melodykeys.MidoSequencer()):
            await scheduler.wait_finished()

    asyncio.run(main())
    ```

Package-level exports: ``parse``, ``build``, ``compile_notation``,
``ChannelState``, ``NotationBuffer``, ``KeyboardInputController``,
``PlaybackScheduler``, ``ToggleControl``, ``MidoSequencer``.
"""

import melodykeys.buffer
import melodykeys.channel
import melodykeys.device
import melodykeys.keyboard
import melodykeys.notation
import melodykeys.scheduler
import melodykeys.timeline


parse = melodykeys.notation.parse
build = melodykeys.timeline.build
compile_notation = melodykeys.timeline.compile_notation
ChannelState = melodykeys.channel.ChannelState
NotationBuffer = melodykeys.buffer.NotationBuffer
KeyboardInputController = melodykeys.keyboard.KeyboardInputController
PlaybackScheduler = melodykeys.scheduler.PlaybackScheduler
ToggleControl = melodykeys.scheduler.ToggleControl
MidoSequencer = melodykeys.device.MidoSequencer
