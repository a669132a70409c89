"""
Tests for folding per-idea summaries into the final content tree
"""

from studycast.models import UploadedFile
from studycast.services.pipeline.content import build_final_content, combine_sources
from studycast.services.pipeline.content.final_content import normalize_title, split_markdown_sections


def _with_summaries(outline, summaries):
    annotated = outline.clone()
    for idea, summary in zip(annotated.ideas, summaries):
        idea.summary = summary
    return annotated


class TestSplitMarkdownSections:

    def test_preamble_and_sections(self):
        preamble, sections = split_markdown_sections("intro\n# Uno\ntesto\n## Due\naltro")

        assert preamble == "intro"
        assert [(level, title, body) for level, title, _, body in sections] == [
            (1, "Uno", "testo"),
            (2, "Due", "altro"),
        ]

    def test_headings_inside_code_fences_are_ignored(self):
        _, sections = split_markdown_sections("# Uno\n```\n# non un titolo\n```")

        assert len(sections) == 1
        assert "# non un titolo" in sections[0][3]


def test_normalize_title():
    assert normalize_title("  **Fase   Luminosa**: ") == "fase luminosa"


class TestBuildFinalContent:

    def test_content_lands_on_matching_nodes(self, sample_outline):
        summaries = [
            "# Fase luminosa\n\nIntro.\n\n## Clorofilla\n\nVerde.\n\n### Pigmenti\n\nColori.\n\n## Fotolisi\n\nAcqua.",
            "# Ciclo di Calvin\n\nBuio.\n\n## *Fissazione*\n\nRuBisCO.",
        ]

        final = build_final_content(_with_summaries(sample_outline, summaries))

        contents = {node.id: node.content for node in final.nodes()}
        assert contents == {
            "1": "Intro.",
            "1.1": "Verde.",
            "1.1.1": "Colori.",
            "1.2": "Acqua.",
            "2": "Buio.",
            "2.1": "RuBisCO.",
        }
        assert all(idea.summary is None for idea in final.ideas)

    def test_input_is_not_modified(self, sample_outline):
        annotated = _with_summaries(sample_outline, ["# Fase luminosa\n\nIntro."])

        build_final_content(annotated)

        assert annotated.ideas[0].summary == "# Fase luminosa\n\nIntro."
        assert annotated.ideas[0].content is None

    def test_unmatched_heading_is_kept_on_parent(self, sample_outline):
        summary = "# Fase luminosa\n\nIntro.\n\n## Curiosità\n\nExtra."

        final = build_final_content(_with_summaries(sample_outline, [summary]))

        content = final.ideas[0].content
        assert content.startswith("Intro.")
        assert "## Curiosità\n\nExtra." in content

    def test_nested_heading_under_wrong_sub_idea(self, sample_outline):
        summary = "# Fase luminosa\n\n## Fotolisi\n\nAcqua.\n\n### Pigmenti\n\nColori."

        final = build_final_content(_with_summaries(sample_outline, [summary]))

        assert final.find("1.1.1").content == "Colori."
        assert final.find("1.2").content == "Acqua."

    def test_idea_without_summary_keeps_structure(self, sample_outline):
        final = build_final_content(sample_outline)
        assert [node.id for node in final.nodes()] == [node.id for node in sample_outline.nodes()]
        assert all(node.content is None for node in final.nodes())


def test_combine_sources_skips_unselected_files():
    files = [
        UploadedFile(name="a.txt", content="primo"),
        UploadedFile(name="b.txt", content="escluso", selected=False),
        UploadedFile(name="c.txt", content="terzo"),
    ]

    combined = combine_sources(files)

    assert combined == (
        "--- START OF a.txt ---\n\nprimo\n\n--- END OF a.txt ---"
        "\n\n"
        "--- START OF c.txt ---\n\nterzo\n\n--- END OF c.txt ---"
    )
    assert "escluso" not in combined
