"""
Tests for the static document generator (escape rooms and tab panels).
"""
import re

import pytest
from bs4 import BeautifulSoup

from challenges import PRESETS, build_challenges, get_template
from generator import generate_escape_room, generate_tabs_document
from html_utils import decode_solution, encode_solution, escape_html
from models import ChallengeInstance, ChallengeType, SessionConfig, TabPanel
from quiz_rules import normalize_answer


def make_document(room_name="Demo", minutes=1, types=("format",)):
    config = SessionConfig(room_name=room_name, time_limit_minutes=minutes, selected_type_ids=list(types))
    challenges = build_challenges(config.selected_type_ids)
    return config, challenges, generate_escape_room(config, challenges).html_text


def embedded_time_limit(html):
    return int(re.search(r"var TIME_LIMIT_MS = (\d+);", html).group(1))


def stage_blocks(html):
    return BeautifulSoup(html, "html.parser").select("div.stage")


# --- Escaping ---

def test_escape_html_replaces_the_five_characters():
    assert escape_html("""<a href="x">Tom & 'Jerry'</a>""") == (
        "&lt;a href=&quot;x&quot;&gt;Tom &amp; &#39;Jerry&#39;&lt;/a&gt;"
    )


def test_escape_html_leaves_safe_text_alone():
    assert escape_html("") == ""
    assert escape_html("plain text 123 é 🔐") == "plain text 123 é 🔐"


def test_escape_html_is_not_idempotent():
    assert escape_html(escape_html("&")) == "&amp;amp;"


def test_solution_encoding_round_trip_with_unicode():
    text = 'console.log("héllo 🔐");'
    encoded = encode_solution(text)
    assert text not in encoded
    assert decode_solution(encoded) == text


# --- Escape room document ---

def test_demo_scenario():
    config, challenges, html = make_document()
    assert [c.instance_id for c in challenges] == ["format-0"]
    assert len(stage_blocks(html)) == 1
    assert embedded_time_limit(html) == 60_000


@pytest.mark.parametrize("count", range(1, 7))
@pytest.mark.parametrize("minutes", [1, 8, 60])
def test_stage_count_and_time_limit(count, minutes):
    types = list(ChallengeType)[:count]
    _, _, html = make_document(minutes=minutes, types=types)
    assert len(stage_blocks(html)) == count
    assert "var STAGE_COUNT = %d;" % count in html
    assert embedded_time_limit(html) == minutes * 60_000


def test_only_first_stage_is_visible():
    _, _, html = make_document(types=PRESETS["hard"].type_ids)
    styles = [block["style"] for block in stage_blocks(html)]
    assert styles[0] == "display:block;"
    assert all(style == "display:none;" for style in styles[1:])


def test_stage_blocks_have_textarea_button_and_feedback():
    _, challenges, html = make_document(types=["format", "debug"])
    soup = BeautifulSoup(html, "html.parser")
    for i, challenge in enumerate(challenges):
        block = soup.find(id=f"stage{i}")
        assert block.find("textarea", id=f"code{i}").string == challenge.starter_text
        assert block.find("button")["onclick"] == f"checkStage({i})"
        assert block.find(id=f"feedback{i}").get_text() == ""


def test_embedded_solution_round_trips_to_template():
    _, challenges, html = make_document(types=PRESETS["hard"].type_ids)
    for block, challenge in zip(stage_blocks(html), challenges):
        decoded = decode_solution(block["data-solution"])
        expected = get_template(challenge.type_id).canonical_solution
        assert normalize_answer(decoded) == normalize_answer(expected)


def test_solutions_are_not_in_plain_text():
    _, _, html = make_document(types=["debug"])
    assert get_template("debug").canonical_solution not in html
    assert "i < 5" not in html


def test_user_text_is_escaped():
    config = SessionConfig(room_name="<script>alert('room')</script>", time_limit_minutes=5,
                           selected_type_ids=["format"])
    challenge = ChallengeInstance(
        instance_id="format-0",
        type_id=ChallengeType.FORMAT,
        title="<script>alert(1)</script>",
        description='Say "hi" & <b>leave</b>',
        starter_text="</textarea><script>alert(2)</script>",
        canonical_solution="x",
    )
    html = generate_escape_room(config, [challenge]).html_text

    assert "<script>alert(" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "<title>&lt;script&gt;alert(&#39;room&#39;)&lt;/script&gt;</title>" in html
    assert "Say &quot;hi&quot; &amp; &lt;b&gt;leave&lt;/b&gt;" in html
    assert "&lt;/textarea&gt;&lt;script&gt;alert(2)" in html


def test_document_is_self_contained():
    _, _, html = make_document(types=PRESETS["hard"].type_ids)
    soup = BeautifulSoup(html, "html.parser")
    assert html.startswith("<!doctype html>")
    assert soup.find_all("link") == []
    assert all(not script.get("src") for script in soup.find_all("script"))
    assert "http://" not in html.replace("https://api.example.com", "")
    assert "fetch(" not in soup.find("script").string


def test_generation_is_deterministic():
    assert make_document(types=["api", "logic"])[2] == make_document(types=["api", "logic"])[2]


def test_room_name_is_title_and_heading():
    _, _, html = make_document(room_name="Vault 7")
    soup = BeautifulSoup(html, "html.parser")
    assert soup.title.string == "Vault 7"
    assert "Vault 7" in soup.h1.get_text()


# --- Tab document ---

def test_tabs_document_structure():
    tabs = [TabPanel(id=1, label="Intro", content="line one\nline two"),
            TabPanel(id=2, label="<b>Next</b>", content="a & b")]
    html = generate_tabs_document(tabs).html_text
    soup = BeautifulSoup(html, "html.parser")

    assert [b.get_text() for b in soup.find_all("button")] == ["Intro", "<b>Next</b>"]
    assert "&lt;b&gt;Next&lt;/b&gt;" in html
    assert "line one<br/>line two" in html
    assert "a &amp; b" in html
    assert soup.find(id="tab0")["style"].startswith("display:block;")
    assert soup.find(id="tab1")["style"].startswith("display:none;")
    assert "var n=2;" in html
