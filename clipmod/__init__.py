"""
Clipmod - a transform language and clip-transformation engine for sequencer clips.

Clipmod modulates note and clip parameters with short, line-based
statements, and restructures arrangement clips by slicing and shuffling
them. It works on any store that exposes notes and clips; ``LiveSet`` is the
in-memory one, and ``clipmod.midi_file`` loads and saves standard MIDI files.

Transform statements:

- **Parameters.** ``velocity``, ``timing``, ``duration``, ``probability``,
  ``deviation`` and ``pitch`` for MIDI notes; ``gain`` and ``pitchShift``
  for audio clips.
- **Operators.** ``=``, ``+=``, ``-=``, ``*=``, ``/=``. Results are clamped
  to each parameter's valid range.
- **Selectors.** An optional pitch range (``C3-C5``) and/or time range
  (``1|1-2|4``) narrows which notes a statement touches.
- **Functions.** Waveforms (``cos``, ``sin``, ``tri``, ``saw``, ``square``, with an
  optional trailing ``sync``), ramps (``ramp``, ``curve``), randomness
  (``rand``, ``choose``) and math (``round``, ``floor``, ``ceil``, ``abs``,
  ``clamp``, ``min``, ``max``, ``pow``).
- **Musical time.** Note start and duration are in musical beats, where one
  beat is the time signature's denominator. Periods like ``1:0t`` mean one
  bar in any meter.
- **Reproducible.** Every call uses one seeded random stream and returns
  its seed, so any result can be replayed.

Minimal example:

    ```python
    import clipmod

    live_set = clipmod.LiveSet()
    clip = live_set.add_clip(0, length=16, start_time=0, notes=[
        clipmod.Note(pitch=60, start_time=beat, duration=0.5) for beat in range(16)
    ])

    result = clipmod.transform_clips.transform_clips(live_set, clipmod.TransformClipsRequest(
        clip_ids = [clip.clip_id],
        transforms = "velocity = 90 + 30 * cos(1:0t)\\nC4 timing += rand(-0.05, 0.05)",
        seed = 7,
    ))
    ```

Package-level exports: ``LiveSet``, ``Note``, ``parse``, ``TransformClipsRequest``,
``RandomizationSpec``. The orchestrator is ``clipmod.transform_clips.transform_clips``.
"""

import clipmod.live_set
import clipmod.random_params
import clipmod.transform_clips
import clipmod.transform_parser


LiveSet = clipmod.live_set.LiveSet
Note = clipmod.live_set.Note
parse = clipmod.transform_parser.parse
TransformClipsRequest = clipmod.transform_clips.TransformClipsRequest
RandomizationSpec = clipmod.random_params.RandomizationSpec
