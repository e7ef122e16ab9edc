"""
Static document generator.

Builds standalone HTML documents (escape rooms and tab panels) as plain strings.
The output references no external resources and embeds no timestamps, so the same
input always renders byte-identical markup; the escape room clock starts only
when the exported file is opened.
"""

import json
from string import Template
from typing import Sequence

from html_utils import encode_solution, escape_html
from logger import builder_logger
from models import ChallengeInstance, GeneratedDocument, SessionConfig, TabPanel
import quiz_rules

# ============================================================================
# ESCAPE ROOM DOCUMENT
# ============================================================================

ESCAPE_ROOM_STYLES = """
body {
  font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
  margin: 0;
  padding: 20px;
  background: linear-gradient(135deg, #0f2027 0%, #203a43 50%, #2c5364 100%);
  min-height: 100vh;
}
.container {
  max-width: 900px;
  margin: 0 auto;
  background: linear-gradient(135deg, #1a1a2e 0%, #16213e 100%);
  padding: 40px;
  border-radius: 20px;
  box-shadow: 0 20px 60px rgba(0,0,0,0.5);
  border: 2px solid #ffd700;
}
h1 {
  text-align: center;
  color: #ffd700;
  margin-bottom: 30px;
  font-size: 36px;
}
#timer {
  text-align: center;
  font-size: 64px;
  font-weight: bold;
  color: #ffd700;
  margin: 30px 0;
  padding: 30px;
  background: linear-gradient(135deg, #1e3c72 0%, #2a5298 100%);
  border-radius: 15px;
  border: 3px solid #ffd700;
}
#timer.urgent {
  color: #ff4444;
  border-color: #ff4444;
  text-shadow: 0 0 20px rgba(255,68,68,0.8);
}
#message {
  text-align: center;
  font-size: 28px;
  margin: 30px 0;
  font-weight: bold;
}
#message.success { color: #ffd700; }
#message.failure { color: #ff4444; }
#stages.expired { opacity: 0.5; }
.stage {
  padding: 30px;
  background: linear-gradient(135deg, #1e3c72 0%, #2a5298 100%);
  border: 3px solid #ffd700;
  border-radius: 12px;
  margin: 20px 0;
}
.stage h3 { color: #ffd700; font-size: 24px; margin-bottom: 15px; }
.stage p.description { color: #ffffff; font-size: 16px; margin-bottom: 20px; }
.stage textarea {
  width: 100%;
  font-family: 'Courier New', monospace;
  padding: 12px;
  font-size: 14px;
  border: 2px solid #ffd700;
  border-radius: 8px;
  background: #1a1a2e;
  color: #00ff00;
  resize: vertical;
  box-sizing: border-box;
}
.stage button {
  margin-top: 15px;
  padding: 12px 30px;
  background: linear-gradient(135deg, #ffd700 0%, #ffed4e 100%);
  color: #1a1a2e;
  border: none;
  border-radius: 8px;
  cursor: pointer;
  font-size: 18px;
  font-weight: bold;
}
.feedback { margin-top: 15px; font-weight: bold; font-size: 18px; }
.feedback.success { color: #00ff00; }
.feedback.failure { color: #ff4444; }
"""

STAGE_TEMPLATE = """
    <div class="stage" id="stage{index}" data-solution="{encoded_solution}" style="display:{display};">
      <h3>{icon} {title}</h3>
      <p class="description">{description}</p>
      <textarea id="code{index}" rows="8" spellcheck="false">{starter}</textarea>
      <button type="button" onclick="checkStage({index})">Submit Answer</button>
      <p class="feedback" id="feedback{index}"></p>
    </div>"""


def render_stage(index: int, challenge: ChallengeInstance) -> str:
    """One stage block. Only the first stage starts visible."""
    return STAGE_TEMPLATE.format(
        index=index,
        encoded_solution=encode_solution(challenge.canonical_solution),
        display="block" if index == 0 else "none",
        icon=escape_html(challenge.icon),
        title=escape_html(challenge.title),
        description=escape_html(challenge.description),
        starter=escape_html(challenge.starter_text),
    )


def render_runtime_script(stage_count: int, time_limit_ms: int) -> str:
    return Template(quiz_rules.RUNTIME_JS).substitute(
        stage_count=stage_count,
        time_limit_ms=time_limit_ms,
        tick_interval_ms=quiz_rules.TICK_INTERVAL_MS,
        urgent_threshold_ms=quiz_rules.URGENT_THRESHOLD_MS,
        advance_delay_ms=quiz_rules.ADVANCE_DELAY_MS,
        # json.dumps yields quoted, ASCII-only JS string literals
        time_up_message=json.dumps(quiz_rules.TIME_UP_MESSAGE),
        escaped_message=json.dumps(quiz_rules.ESCAPED_MESSAGE),
        correct_feedback=json.dumps(quiz_rules.CORRECT_FEEDBACK),
        incorrect_feedback=json.dumps(quiz_rules.INCORRECT_FEEDBACK),
    )


def generate_escape_room(config: SessionConfig, challenges: Sequence[ChallengeInstance]) -> GeneratedDocument:
    """
    Render the exported escape room.

    Each stage carries its base64-encoded solution in data-solution. That hides
    the answer from a casual glance at the markup only; it is not protection.
    """
    stages_html = "".join(render_stage(i, challenge) for i, challenge in enumerate(challenges))
    script = render_runtime_script(len(challenges), config.time_limit_ms)
    room_name = escape_html(config.room_name)

    html = f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<meta name="viewport" content="width=device-width, initial-scale=1"/>
<title>{room_name}</title>
<style>{ESCAPE_ROOM_STYLES}</style>
</head>
<body>
<div class="container">
  <h1>🔐 {room_name} 🔐</h1>
  <div id="timer">Loading...</div>
  <div id="message"></div>
  <div id="stages">{stages_html}
  </div>
</div>
<script>{script}</script>
</body>
</html>
"""

    builder_logger.info(
        f"🏗️ Generated escape room '{config.room_name}': {len(challenges)} stages, "
        f"{config.time_limit_minutes} min, {len(html)} chars"
    )
    return GeneratedDocument(html_text=html)


# ============================================================================
# TAB PANEL DOCUMENT
# ============================================================================

TABS_SCRIPT = """
<script>
function showTab(i){
  var n=%d;
  for(var k=0;k<n;k++){
    document.getElementById('tab'+k).style.display = (k===i) ? 'block' : 'none';
  }
}
</script>"""


def generate_tabs_document(tabs: Sequence[TabPanel]) -> GeneratedDocument:
    """Buttons, then panels (first one visible), then the showTab switcher."""
    buttons = "".join(
        f'<button id="btn{i}" onclick="showTab({i})" '
        f'style="padding:4px 8px;margin:2px;border:1px solid #999;background:#f5f5f5;">'
        f'{escape_html(tab.label)}</button>'
        for i, tab in enumerate(tabs)
    )
    panels = "".join(
        f'<div id="tab{i}" style="display:{"block" if i == 0 else "none"};'
        f'border:1px solid #999;padding:10px;margin-top:4px;">'
        f'{escape_html(tab.content).replace(chr(10), "<br/>")}</div>'
        for i, tab in enumerate(tabs)
    )

    html = (
        '<!doctype html><html lang="en"><head><meta charset="utf-8"/><title>Tabs</title></head>'
        '<body style="font-family:Arial,Helvetica,sans-serif;margin:16px;">'
        + buttons
        + panels
        + TABS_SCRIPT % len(tabs)
        + '</body></html>'
    )

    builder_logger.info(f"🗂️ Generated tabs document with {len(tabs)} tabs")
    return GeneratedDocument(html_text=html)
