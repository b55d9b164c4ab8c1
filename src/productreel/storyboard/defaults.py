from __future__ import annotations

from .model import AudioMood

DEFAULT_AUDIO_MOOD = AudioMood.CLASSICAL

# Every brief names an explicit tempo so the music model lands inside the BPM band.
_DEFAULT_AUDIO_PROMPTS: dict[AudioMood, str] = {
    AudioMood.CLASSICAL: (
        "upbeat orchestral anthem, driving staccato strings, punchy timpani on every beat, "
        "130 BPM, triumphant brass fanfare, energetic pizzicato rhythm, building to an explosive climax"
    ),
    AudioMood.ELECTRONIC: (
        "high-energy electronic anthem, four-on-the-floor kick, driving synth bass, catchy lead, "
        "snare-roll build-ups into big layered drops, 128 BPM, premium tech ad energy"
    ),
    AudioMood.POP: (
        "upbeat pop anthem, punchy kick and snappy snare, catchy piano riff, hand claps and stomps, "
        "explosive singalong chorus, 120 BPM, feel-good viral ad soundtrack"
    ),
    AudioMood.EPIC: (
        "high-energy epic trailer music, pounding war drums at 130 BPM, staccato brass hits, "
        "urgent choir, relentless percussion into massive orchestral drops"
    ),
    AudioMood.DARK: (
        "dark driving electronic, punchy industrial beats at 120 BPM, aggressive bass hits, "
        "sharp staccato synths, rapid percussion, fast thriller chase energy"
    ),
}

DEFAULT_AUDIO_LYRICS = """[Verse 1]
Breaking through the noise, something new is here
Built to make it simple, built to make it clear

[Chorus]
This is how it starts, this is how we grow
One step at a time, watch the future flow

[Bridge]
No more waiting, the time is now

[Outro]
Take the leap, start today"""

# Empty script means "render without narration".
NO_NARRATION = ""


def default_audio_prompt(mood: AudioMood) -> str:
    return _DEFAULT_AUDIO_PROMPTS[AudioMood(mood)]
