"""
Tests for docfill.utils.ooxml — run scanner, text extractor and run cloner.

Run: python3 test_ooxml.py
From: python/
"""

import sys

sys.path.insert(0, '.')

from docfill.models import SegmentType
from docfill.utils.ooxml import (
    brace_balance,
    clone_run_with_text,
    collapse_run_text_nodes,
    escape_xml,
    extract_run_text,
    is_empty_element_markup,
    scan_segments,
)


PARAGRAPH = (
    '<w:p><w:pPr><w:jc w:val="both"/></w:pPr>'
    '<w:r w:rsidR="00AB12"><w:rPr><w:b/></w:rPr><w:t>{{</w:t></w:r>'
    '<w:proofErr w:type="spellStart"/>'
    '<w:r><w:t>deal_full_name</w:t></w:r>'
    '<w:proofErr w:type="spellEnd"/>'
    '<w:r/>'
    '<w:r><w:t>}}</w:t></w:r>'
    '</w:p>'
)


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

def test_segments_cover_input():
    segments = scan_segments(PARAGRAPH)
    assert "".join(s.content for s in segments) == PARAGRAPH

    runs = [s.content for s in segments if s.kind == SegmentType.RUN]
    assert runs == [
        '<w:r w:rsidR="00AB12"><w:rPr><w:b/></w:rPr><w:t>{{</w:t></w:r>',
        '<w:r><w:t>deal_full_name</w:t></w:r>',
        '<w:r><w:t>}}</w:t></w:r>',
    ]
    print("PASS: segments cover input")


def test_self_closing_run_is_not_a_run():
    segments = scan_segments('<w:p><w:r/><w:r><w:t>a</w:t></w:r></w:p>')
    assert segments[0].kind == SegmentType.OTHER
    assert segments[0].content == '<w:p><w:r/>'
    assert segments[1].kind == SegmentType.RUN
    print("PASS: self-closing run is not a run")


def test_part_without_runs():
    xml = '<w:hdr><w:p><w:pPr/></w:p></w:hdr>'
    segments = scan_segments(xml)
    assert len(segments) == 1
    assert segments[0].kind == SegmentType.OTHER
    assert segments[0].content == xml
    assert scan_segments("") == []
    print("PASS: part without runs")


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------

def test_extract_concatenates_text_nodes():
    run = '<w:r><w:rPr><w:b/></w:rPr><w:t>{{deal</w:t><w:tab/><w:t xml:space="preserve">_rg }}</w:t></w:r>'
    assert extract_run_text(run) == "{{deal_rg }}"
    print("PASS: extract concatenates text nodes")


def test_extract_ignores_tags_that_only_start_with_t():
    assert extract_run_text('<w:r><w:tab/><w:t>x</w:t></w:r>') == "x"
    assert extract_run_text('<w:r><w:t/><w:br/></w:r>') == ""
    assert extract_run_text('<w:r><w:rPr/></w:r>') == ""
    print("PASS: extract ignores <w:tab/> and empty nodes")


def test_extract_keeps_entities():
    assert extract_run_text('<w:r><w:t>Ana &amp; João</w:t></w:r>') == "Ana &amp; João"
    print("PASS: extract keeps entities")


# ---------------------------------------------------------------------------
# Cloning
# ---------------------------------------------------------------------------

def test_clone_keeps_formatting_and_drops_extra_nodes():
    template = '<w:r><w:rPr><w:b/></w:rPr><w:t xml:space="preserve">old </w:t><w:tab/><w:t>more</w:t></w:r>'
    assert clone_run_with_text(template, "name") == '<w:r><w:rPr><w:b/></w:rPr><w:t>name</w:t><w:tab/></w:r>'
    print("PASS: clone keeps formatting, drops extra nodes")


def test_clone_adds_preserve_for_edge_whitespace():
    template = '<w:r><w:t>x</w:t></w:r>'
    assert clone_run_with_text(template, " residente") == '<w:r><w:t xml:space="preserve"> residente</w:t></w:r>'
    assert clone_run_with_text(template, "residente ") == '<w:r><w:t xml:space="preserve">residente </w:t></w:r>'
    print("PASS: clone adds preserve")


def test_clone_strips_inherited_preserve():
    template = '<w:r><w:t xml:space="preserve"> {{</w:t></w:r>'
    assert clone_run_with_text(template, "{{deal_rg}}") == '<w:r><w:t>{{deal_rg}}</w:t></w:r>'
    print("PASS: clone strips inherited preserve")


def test_clone_synthesizes_text_node():
    template = '<w:r><w:rPr><w:i/></w:rPr></w:r>'
    assert clone_run_with_text(template, "abc") == '<w:r><w:rPr><w:i/></w:rPr><w:t>abc</w:t></w:r>'
    assert clone_run_with_text('<w:r><w:t/></w:r>', "a") == '<w:r><w:t>a</w:t></w:r>'
    print("PASS: clone synthesizes text node")


def test_clone_with_empty_text():
    assert clone_run_with_text('<w:r><w:t>x</w:t></w:r>', "") == ""
    print("PASS: clone with empty text")


# ---------------------------------------------------------------------------
# Single-run collapse, helpers
# ---------------------------------------------------------------------------

def test_collapse_split_text_nodes():
    xml = '<w:p><w:r><w:t>{</w:t><w:t>{name}}</w:t></w:r></w:p>'
    assert collapse_run_text_nodes(xml) == '<w:p><w:r><w:t>{{name}}</w:t></w:r></w:p>'
    print("PASS: collapse split text nodes")


def test_collapse_leaves_balanced_nodes_alone():
    xml = '<w:p><w:r><w:t>{{a}}</w:t><w:t xml:space="preserve"> b</w:t></w:r><w:r><w:t>c</w:t><w:t>d</w:t></w:r></w:p>'
    assert collapse_run_text_nodes(xml) == xml
    print("PASS: collapse leaves balanced nodes alone")


def test_helpers():
    assert brace_balance("{{deal_rg}") == 1
    assert brace_balance("}, residente") == -1
    assert brace_balance("plain") == 0
    assert escape_xml("Ana & \"J\" <x> 'y'") == "Ana &amp; &quot;J&quot; &lt;x&gt; &apos;y&apos;"
    print("PASS: helpers")


def test_empty_element_markup():
    assert is_empty_element_markup('<w:proofErr w:type="spellStart"/>')
    assert is_empty_element_markup('<w:bookmarkStart w:id="0" w:name="x"/> <w:bookmarkEnd w:id="0"/>')
    assert is_empty_element_markup('')
    assert not is_empty_element_markup('<w:ins w:id="1">')
    assert not is_empty_element_markup('</w:hyperlink>')
    assert not is_empty_element_markup('</w:p><w:p>')
    assert not is_empty_element_markup('<w:bookmarkEnd w:id="0"/>stray')
    print("PASS: empty element markup")


if __name__ == '__main__':
    tests = [
        test_segments_cover_input,
        test_self_closing_run_is_not_a_run,
        test_part_without_runs,
        test_extract_concatenates_text_nodes,
        test_extract_ignores_tags_that_only_start_with_t,
        test_extract_keeps_entities,
        test_clone_keeps_formatting_and_drops_extra_nodes,
        test_clone_adds_preserve_for_edge_whitespace,
        test_clone_strips_inherited_preserve,
        test_clone_synthesizes_text_node,
        test_clone_with_empty_text,
        test_collapse_split_text_nodes,
        test_collapse_leaves_balanced_nodes_alone,
        test_helpers,
        test_empty_element_markup,
    ]

    passed = 0
    failed = 0
    for t in tests:
        try:
            t()
            passed += 1
        except Exception as e:
            print(f"FAIL: {t.__name__} — {e}")
            failed += 1

    print(f"\n{'=' * 50}")
    print(f"Results: {passed} passed, {failed} failed out of {len(tests)} tests")
    if failed > 0:
        sys.exit(1)
    else:
        print("All tests passed!")
