"""
Authoring Server for the Escape Room Builder
Drives the in-tool preview and the tab builder through plain HTML forms:
1. Setup (room name, time limit, challenge toggles, presets)
2. Game preview (timer, one stage at a time)
3. Generate + persist the exported document (via the REST API)
4. Tab panel builder
"""

import os

import requests
from dotenv import load_dotenv
from flask import Flask, Response, jsonify, redirect, render_template_string, request, url_for
from flask_cors import CORS

from authoring import MAX_TABS, AuthoringMode, EscapeRoomBuilder, JsonFileStorage, TabBuilder
from challenges import CHALLENGE_TEMPLATES, PRESETS
from errors import ConfigurationError, SessionStateError
from logger import builder_logger
import quiz_rules

load_dotenv()
API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
TABS_STATE_PATH = os.getenv("TABS_STATE_PATH", "tabs_state.json")
AUTHORING_PORT = int(os.getenv("AUTHORING_PORT", "5000"))
PERSIST_TIMEOUT_SECONDS = 10

app = Flask(__name__)
CORS(app)

# Single author, in-process state
builder = EscapeRoomBuilder()
tab_builder = TabBuilder(JsonFileStorage(TABS_STATE_PATH))
workspace = {"document": None, "tabs_document": None, "notice": "", "saved_room_id": None}


def set_notice(text: str):
    workspace["notice"] = text


def pop_notice() -> str:
    text, workspace["notice"] = workspace["notice"], ""
    return text


# ============================================================================
# PAGE TEMPLATES
# ============================================================================

BASE_STYLE = """
<style>
    body { font-family: Arial, sans-serif; max-width: 900px; margin: 40px auto; padding: 20px; }
    h1 { color: #2c3e50; }
    .panel { background: #f8f9fa; padding: 15px; margin: 10px 0; border-left: 4px solid #3498db; }
    .notice { background: #fdecea; border-left-color: #e74c3c; }
    .selected { font-weight: bold; background: #d6eaf8; }
    .urgent { color: #e74c3c; }
    textarea { width: 100%; font-family: 'Courier New', monospace; }
    form.inline { display: inline; }
</style>
"""

SETUP_PAGE = """
<!DOCTYPE html>
<html>
<head><title>Escape Room Builder</title>""" + BASE_STYLE + """</head>
<body>
    <h1>🔐 Escape Room Builder</h1>
    <p><a href="{{ url_for('tabs_page') }}">Tab builder →</a></p>
    {% if notice %}<div class="panel notice">{{ notice }}</div>{% endif %}

    <div class="panel">
        <form method="post" action="{{ url_for('update_config') }}">
            <label>Room name <input type="text" name="room_name" value="{{ builder.room_name }}"></label>
            <label>Time limit (minutes)
                <input type="number" name="time_limit" min="1" max="60" value="{{ builder.time_limit_minutes }}">
            </label>
            <button type="submit">Save</button>
        </form>
    </div>

    <div class="panel">
        <strong>Presets:</strong>
        {% for name, preset in presets.items() %}
        <form class="inline" method="post" action="{{ url_for('apply_preset', name=name) }}">
            <button type="submit">{{ preset.label }}</button>
        </form>
        {% endfor %}
    </div>

    <div class="panel">
        <strong>Challenges (in stage order):</strong>
        <ol>{% for type_id in builder.selected_type_ids %}<li>{{ templates[type_id].title }}</li>{% endfor %}</ol>
        {% for type_id, template in templates.items() %}
        <form class="inline" method="post" action="{{ url_for('toggle_challenge', type_id=type_id.value) }}">
            <button type="submit" class="{{ 'selected' if type_id in builder.selected_type_ids else '' }}">
                {{ template.icon }} {{ template.title }}
            </button>
        </form>
        {% endfor %}
    </div>

    <form method="post" action="{{ url_for('start_game') }}">
        <button type="submit">🚀 Start Escape Room</button>
    </form>
</body>
</html>
"""

GAME_PAGE = """
<!DOCTYPE html>
<html>
<head><title>{{ builder.room_name }}</title>""" + BASE_STYLE + """</head>
<body>
    <h1>🔐 {{ builder.room_name }}</h1>
    {% if notice %}<div class="panel notice">{{ notice }}</div>{% endif %}
    <h2 id="timer" class="{{ 'urgent' if timer.urgent else '' }}">{{ timer.display }}</h2>
    <p>Stage {{ builder.current_stage_index + 1 }} of {{ builder.challenges|length }}</p>
    {% if builder.message %}<div class="panel"><strong>{{ builder.message }}</strong></div>{% endif %}

    {% if challenge and timer.active %}
    <div class="panel">
        <h3>{{ challenge.icon }} {{ challenge.title }}</h3>
        <p>{{ challenge.description }}</p>
        <form method="post" action="{{ url_for('submit_answer') }}">
            <textarea name="answer" rows="8">{{ builder.user_input }}</textarea>
            <button type="submit">✓ Submit Answer</button>
        </form>
        {% if builder.feedback %}<p><strong>{{ builder.feedback }}</strong></p>{% endif %}
    </div>
    {% endif %}

    {% if builder.completed %}
    <div class="panel">
        <p>Escaped in {{ escape_time }}.</p>
        <form class="inline" method="post" action="{{ url_for('generate_document') }}">
            <button type="submit">⚡ Generate Code</button>
        </form>
        {% if document %}
        <form class="inline" method="post" action="{{ url_for('persist_document') }}">
            <button type="submit">💾 Save Escape Room</button>
        </form>
        <a href="{{ url_for('download_document') }}">Download HTML</a>
        {% if saved_room_id %}<p>Saved: <a href="{{ api_base_url }}/api/serve/{{ saved_room_id }}">{{ saved_room_id }}</a></p>{% endif %}
        <textarea readonly rows="16">{{ document.html_text }}</textarea>
        {% endif %}
    </div>
    {% endif %}

    <form method="post" action="{{ url_for('stop_game') }}">
        <button type="submit">⏹ Back to setup</button>
    </form>

    <script>
        var stageIndex = {{ builder.current_stage_index }};
        function poll() {
            fetch('{{ url_for('game_state') }}').then(function (r) { return r.json(); }).then(function (s) {
                document.getElementById('timer').textContent = s.display;
                document.getElementById('timer').className = s.urgent ? 'urgent' : '';
                if (s.mode !== 'game' || s.stageIndex !== stageIndex || s.justExpired || s.completed) {
                    location.reload();
                    return;
                }
                if (s.active) setTimeout(poll, {{ tick_interval_ms }});
            });
        }
        {% if timer.active %}setTimeout(poll, {{ tick_interval_ms }});{% endif %}
    </script>
</body>
</html>
"""

TABS_PAGE = """
<!DOCTYPE html>
<html>
<head><title>Tab Builder</title>""" + BASE_STYLE + """</head>
<body>
    <h1>🗂️ Tab Builder</h1>
    <p><a href="{{ url_for('index') }}">← Escape room builder</a></p>
    {% if notice %}<div class="panel notice">{{ notice }}</div>{% endif %}

    <div class="panel">
        {% for tab in tabs.tabs %}
        <form class="inline" method="post" action="{{ url_for('activate_tab', tab_id=tab.id) }}">
            <button type="submit" class="{{ 'selected' if tab.id == tabs.active else '' }}">{{ tab.label }}</button>
        </form>
        {% endfor %}
        <form class="inline" method="post" action="{{ url_for('add_tab') }}">
            <button type="submit" {{ 'disabled' if tabs.tabs|length >= max_tabs else '' }}>[+]</button>
        </form>
    </div>

    {% set tab = tabs.active_tab %}
    <div class="panel">
        <form method="post" action="{{ url_for('update_tab', tab_id=tab.id) }}">
            <label>Label <input type="text" name="label" value="{{ tab.label }}"></label>
            <textarea name="content" rows="8">{{ tab.content }}</textarea>
            <button type="submit">Save</button>
        </form>
        <form method="post" action="{{ url_for('remove_tab', tab_id=tab.id) }}">
            <button type="submit" {{ 'disabled' if tabs.tabs|length <= 1 else '' }}>Remove Tab</button>
        </form>
    </div>

    <div class="panel">
        <form method="post" action="{{ url_for('generate_tabs') }}">
            <button type="submit">Generate Code</button>
        </form>
        {% if document %}<textarea readonly rows="10">{{ document.html_text }}</textarea>{% endif %}
    </div>
</body>
</html>
"""


# ============================================================================
# ESCAPE ROOM ROUTES
# ============================================================================

@app.route('/')
def index():
    if builder.mode == AuthoringMode.SETUP:
        return render_template_string(
            SETUP_PAGE,
            builder=builder,
            presets=PRESETS,
            templates=CHALLENGE_TEMPLATES,
            notice=pop_notice(),
        )

    timer = builder.tick()
    return render_template_string(
        GAME_PAGE,
        builder=builder,
        timer=timer,
        challenge=builder.current_challenge,
        escape_time=quiz_rules.format_remaining(builder.escape_time_ms or 0),
        document=workspace["document"],
        saved_room_id=workspace["saved_room_id"],
        api_base_url=API_BASE_URL,
        tick_interval_ms=quiz_rules.TICK_INTERVAL_MS,
        notice=pop_notice(),
    )


@app.route('/state')
def game_state():
    """Timer and stage snapshot for the polling script."""
    timer = builder.tick()
    return jsonify({
        'mode': builder.mode.value,
        'stageIndex': builder.current_stage_index,
        'remainingMs': timer.remaining_ms,
        'display': timer.display,
        'urgent': timer.urgent,
        'active': timer.active,
        'justExpired': timer.just_expired,
        'advancePending': builder.advance_pending,
        'completed': builder.completed,
    })


@app.route('/config', methods=['POST'])
def update_config():
    try:
        minutes = int(request.form.get('time_limit', ''))
        builder.configure(room_name=request.form.get('room_name', ''), time_limit_minutes=minutes)
    except ValueError:
        set_notice("Time limit must be a whole number of minutes between 1 and 60.")
    except (ConfigurationError, SessionStateError) as e:
        set_notice(str(e))
    return redirect(url_for('index'))


@app.route('/toggle/<type_id>', methods=['POST'])
def toggle_challenge(type_id):
    try:
        if not builder.toggle_challenge(type_id):
            set_notice("At least one challenge must stay selected.")
    except ValueError:
        set_notice(f"Unknown challenge type: {type_id}")
    except SessionStateError as e:
        set_notice(str(e))
    return redirect(url_for('index'))


@app.route('/preset/<name>', methods=['POST'])
def apply_preset(name):
    try:
        builder.apply_preset(name)
    except (ConfigurationError, SessionStateError) as e:
        set_notice(str(e))
    return redirect(url_for('index'))


@app.route('/start', methods=['POST'])
def start_game():
    try:
        builder.start_game()
        workspace["document"] = None
        workspace["saved_room_id"] = None
    except (ConfigurationError, SessionStateError) as e:
        set_notice(str(e))
    return redirect(url_for('index'))


@app.route('/stop', methods=['POST'])
def stop_game():
    builder.return_to_setup()
    workspace["document"] = None
    workspace["saved_room_id"] = None
    return redirect(url_for('index'))


@app.route('/submit', methods=['POST'])
def submit_answer():
    builder.tick()
    try:
        builder.submit_answer(request.form.get('answer', ''))
    except SessionStateError as e:
        set_notice(str(e))
    return redirect(url_for('index'))


@app.route('/generate', methods=['POST'])
def generate_document():
    try:
        workspace["document"] = builder.generate()
        workspace["saved_room_id"] = None
    except SessionStateError as e:
        set_notice(str(e))
    return redirect(url_for('index'))


@app.route('/persist', methods=['POST'])
def persist_document():
    """Hands the generated document to the REST API unchanged."""
    document = workspace["document"]
    if document is None:
        set_notice("Generate the escape room before saving it.")
        return redirect(url_for('index'))

    config = builder.config
    payload = {
        'name': config.room_name,
        'timeLimitMinutes': config.time_limit_minutes,
        'challengeTypeIds': [type_id.value for type_id in config.selected_type_ids],
        'htmlOutput': document.html_text,
    }
    try:
        response = requests.post(f"{API_BASE_URL}/api/escape-rooms", json=payload, timeout=PERSIST_TIMEOUT_SECONDS)
        response.raise_for_status()
        saved_room_id = response.json()['id']
    except (requests.exceptions.RequestException, ValueError, KeyError) as e:
        builder_logger.error(f"❌ Saving escape room failed: {e}")
        set_notice("Could not save the escape room. Please try again.")
        return redirect(url_for('index'))

    workspace["saved_room_id"] = saved_room_id
    builder_logger.info(f"💾 Escape room saved through API as {workspace['saved_room_id']}")
    return redirect(url_for('index'))


@app.route('/download')
def download_document():
    document = workspace["document"]
    if document is None:
        set_notice("Generate the escape room before downloading it.")
        return redirect(url_for('index'))
    return Response(
        document.html_text,
        mimetype='text/html',
        headers={'Content-Disposition': 'attachment; filename="escape-room.html"'},
    )


# ============================================================================
# TAB BUILDER ROUTES
# ============================================================================

@app.route('/tabs')
def tabs_page():
    return render_template_string(
        TABS_PAGE,
        tabs=tab_builder,
        max_tabs=MAX_TABS,
        document=workspace["tabs_document"],
        notice=pop_notice(),
    )


@app.route('/tabs/add', methods=['POST'])
def add_tab():
    if tab_builder.add_tab() is None:
        set_notice(f"You can have at most {MAX_TABS} tabs.")
    return redirect(url_for('tabs_page'))


@app.route('/tabs/<int:tab_id>/remove', methods=['POST'])
def remove_tab(tab_id):
    if not tab_builder.remove_tab(tab_id):
        set_notice("The last tab cannot be removed.")
    return redirect(url_for('tabs_page'))


@app.route('/tabs/<int:tab_id>/update', methods=['POST'])
def update_tab(tab_id):
    try:
        tab_builder.update_tab(tab_id, label=request.form.get('label'), content=request.form.get('content'))
    except ConfigurationError as e:
        set_notice(str(e))
    return redirect(url_for('tabs_page'))


@app.route('/tabs/<int:tab_id>/activate', methods=['POST'])
def activate_tab(tab_id):
    try:
        tab_builder.set_active(tab_id)
    except ConfigurationError as e:
        set_notice(str(e))
    return redirect(url_for('tabs_page'))


@app.route('/tabs/generate', methods=['POST'])
def generate_tabs():
    workspace["tabs_document"] = tab_builder.generate()
    return redirect(url_for('tabs_page'))


if __name__ == '__main__':
    print("=" * 60)
    print("Escape Room Authoring Server Starting...")
    print("=" * 60)
    print(f"\nServer will run on: http://127.0.0.1:{AUTHORING_PORT}")
    print(f"Generated rooms are saved through: {API_BASE_URL}")
    print("\n" + "=" * 60)
    app.run(host='127.0.0.1', port=AUTHORING_PORT, debug=True)
