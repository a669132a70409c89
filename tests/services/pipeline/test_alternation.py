"""
Tests for speaker alternation repair
"""

import random

import pytest

from studycast.services.pipeline.script.alternation import (
    correct_voice_alternation,
    dialogue_speakers,
    has_alternation_violation,
    speaker_of,
)

SEP = "--- SEGMENT ---"


def _random_script(rng: random.Random) -> str:
    segments = []
    for _ in range(rng.randint(1, 6)):
        lines = []
        for _ in range(rng.randint(0, 6)):
            kind = rng.random()
            if kind < 0.7:
                lines.append(f"{rng.choice(['Voce 1', 'Voce 2'])}: battuta {rng.randint(0, 99)}")
            elif kind < 0.85:
                lines.append("")
            else:
                lines.append("[musica di sottofondo]")
        segments.append("\n".join(lines))
    return f"\n{SEP}\n".join(segments)


class TestExamples:

    def test_repeated_speaker_inside_segment(self):
        assert correct_voice_alternation("Voce 1: A\nVoce 1: B") == "Voce 1: A\nVoce 2: B"

    def test_boundary_clash_flips_first_line_of_next_segment(self):
        script = f"Voce 1: A\nVoce 2: B\n{SEP}\nVoce 2: C\nVoce 1: D"

        result = correct_voice_alternation(script)

        assert dialogue_speakers(result) == ["Voce 1", "Voce 2", "Voce 1", "Voce 2"]
        assert result.split(SEP)[1] == "\nVoce 1: C\nVoce 2: D"

    def test_repeated_speaker_across_separator(self):
        script = "Voce 1: A\n--- SEGMENT ---\nVoce 1: B"

        assert correct_voice_alternation(script) == "Voce 1: A\n--- SEGMENT ---\nVoce 2: B"

    def test_non_dialogue_lines_pass_through(self):
        script = "Intro musicale\n\nVoce 2: Ciao\n   Voce 2: di nuovo\n(pausa)"

        result = correct_voice_alternation(script)

        assert result == "Intro musicale\n\nVoce 2: Ciao\n   Voce 1: di nuovo\n(pausa)"

    def test_spoken_text_is_never_touched(self):
        script = "Voce 1: Voce 1: ripete il nome\nVoce 1: ancora"
        result = correct_voice_alternation(script)
        assert result == "Voce 1: Voce 1: ripete il nome\nVoce 2: ancora"

    def test_segment_without_dialogue_is_skipped_by_lookback(self):
        script = f"Voce 1: A\n{SEP}\nSolo musica\n{SEP}\nVoce 1: B"

        result = correct_voice_alternation(script)

        assert dialogue_speakers(result) == ["Voce 1", "Voce 2"]

    def test_correct_script_is_returned_unchanged(self):
        script = f"Voce 1: A\nVoce 2: B\n\n{SEP}\n\nVoce 1: C"
        assert correct_voice_alternation(script) == script

    @pytest.mark.parametrize("script", ["", "\n\n", "solo testo", SEP])
    def test_scripts_without_dialogue(self, script):
        assert correct_voice_alternation(script) == script

    def test_custom_labels_and_separator(self):
        script = "Anna: uno\nAnna: due\n###\nLuca: tre"

        result = correct_voice_alternation(script, speakers=("Anna", "Luca"), separator="###")

        assert result == "Anna: uno\nLuca: due\n###\nAnna: tre"

    @pytest.mark.parametrize("speakers", [("Voce 1",), ("Voce 1", "Voce 1"), ("", "Voce 2")])
    def test_invalid_speakers(self, speakers):
        with pytest.raises(ValueError):
            correct_voice_alternation("Voce 1: A", speakers=speakers)

    def test_cascade_across_many_segments(self):
        # every segment starts and ends with Voce 1, forcing a flip at each boundary
        segment = "Voce 1: a\nVoce 2: b\nVoce 1: c"
        script = f"\n{SEP}\n".join([segment] * 5)

        result = correct_voice_alternation(script)

        assert not has_alternation_violation(result)


class TestProperties:

    @pytest.mark.parametrize("seed", range(40))
    def test_alternation_holds_for_random_scripts(self, seed):
        result = correct_voice_alternation(_random_script(random.Random(seed)))
        assert not has_alternation_violation(result)

    @pytest.mark.parametrize("seed", range(40))
    def test_idempotent(self, seed):
        once = correct_voice_alternation(_random_script(random.Random(seed)))
        assert correct_voice_alternation(once) == once

    @pytest.mark.parametrize("seed", range(20))
    def test_only_labels_change(self, seed):
        script = _random_script(random.Random(seed))
        result = correct_voice_alternation(script)

        before, after = script.split("\n"), result.split("\n")
        assert len(before) == len(after)
        for old, new in zip(before, after):
            if old != new:
                assert old.split(":", 1)[1] == new.split(":", 1)[1]


class TestHelpers:

    def test_speaker_of(self):
        labels = ("Voce 1", "Voce 2")
        assert speaker_of("  Voce 2: ciao", labels) == "Voce 2"
        assert speaker_of("Voce 3: ciao", labels) is None
        assert speaker_of("Voce 1 senza due punti", labels) is None
