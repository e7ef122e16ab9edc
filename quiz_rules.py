"""
Timer and answer-check rules for the escape room.

The Python functions drive the in-tool preview (authoring.py). RUNTIME_JS is the
same set of rules written for the browser; generator.py embeds it into every
exported document, so both sides judge answers and count down identically.
"""

import re
from typing import Optional

# --- Constants shared with the embedded runtime ---
TICK_INTERVAL_MS = 1000
URGENT_THRESHOLD_MS = 60_000
ADVANCE_DELAY_MS = 900

CORRECT_FEEDBACK = "✅ Correct!"
INCORRECT_FEEDBACK = "❌ Not quite right. Try again!"
TIME_UP_MESSAGE = "⏰ Time is up! You did not escape!"
ESCAPED_MESSAGE = "🎉 Congratulations! You escaped the room in time!"

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_answer(text: Optional[str]) -> str:
    """Trim, then collapse every whitespace run to a single space. Case is kept."""
    return _WHITESPACE_RUN.sub(" ", (text or "").strip())


def check_answer(normalized_input: str, normalized_solution: str) -> bool:
    """Both arguments must already be normalized."""
    return normalized_input == normalized_solution or normalized_solution in normalized_input


def is_correct(user_input: Optional[str], solution: Optional[str]) -> bool:
    return check_answer(normalize_answer(user_input), normalize_answer(solution))


def compute_remaining(start_ms: int, limit_ms: int, now_ms: int) -> int:
    """Recomputed from the start timestamp on every tick, never decremented."""
    return max(0, limit_ms - (now_ms - start_ms))


def format_remaining(remaining_ms: int) -> str:
    minutes = remaining_ms // 60_000
    seconds = (remaining_ms % 60_000) // 1000
    return f"{minutes}:{seconds:02d}"


def is_urgent(remaining_ms: int) -> bool:
    return remaining_ms < URGENT_THRESHOLD_MS


# ============================================================================
# EMBEDDED RUNTIME (browser form of the rules above)
# ============================================================================
# string.Template placeholders: $stage_count, $time_limit_ms, $tick_interval_ms,
# $urgent_threshold_ms, $advance_delay_ms and the four quoted messages.

RUNTIME_JS = r"""
var STAGE_COUNT = $stage_count;
var TIME_LIMIT_MS = $time_limit_ms;
var TICK_INTERVAL_MS = $tick_interval_ms;
var URGENT_THRESHOLD_MS = $urgent_threshold_ms;
var ADVANCE_DELAY_MS = $advance_delay_ms;

var currentStageIndex = 0;
var startTimestamp = Date.now();
var timerActive = true;
var pendingAdvance = false;

function normalizeAnswer(text) {
  return String(text || '').trim().replace(/\s+/g, ' ');
}

function checkAnswer(normalizedInput, normalizedSolution) {
  return normalizedInput === normalizedSolution || normalizedInput.indexOf(normalizedSolution) !== -1;
}

function computeRemaining(start, limit, now) {
  return Math.max(0, limit - (now - start));
}

function formatRemaining(remaining) {
  var minutes = Math.floor(remaining / 60000);
  var seconds = Math.floor((remaining % 60000) / 1000);
  return minutes + ':' + (seconds < 10 ? '0' : '') + seconds;
}

function isUrgent(remaining) {
  return remaining < URGENT_THRESHOLD_MS;
}

function decodeSolution(encoded) {
  var binary = atob(encoded);
  var bytes = new Uint8Array(binary.length);
  for (var i = 0; i < binary.length; i++) {
    bytes[i] = binary.charCodeAt(i);
  }
  return new TextDecoder('utf-8').decode(bytes);
}

function showMessage(text, className) {
  var message = document.getElementById('message');
  message.textContent = text;
  message.className = className;
}

function tick() {
  if (!timerActive) return;
  var remaining = computeRemaining(startTimestamp, TIME_LIMIT_MS, Date.now());
  var timer = document.getElementById('timer');
  timer.textContent = formatRemaining(remaining);
  if (isUrgent(remaining)) {
    timer.classList.add('urgent');
  }
  if (remaining === 0) {
    timerActive = false;
    showMessage($time_up_message, 'failure');
    document.getElementById('stages').classList.add('expired');
    return;
  }
  setTimeout(tick, TICK_INTERVAL_MS);
}

function advance(stage) {
  pendingAdvance = false;
  if (!timerActive) return;
  document.getElementById('stage' + stage).style.display = 'none';
  if (stage + 1 >= STAGE_COUNT) {
    timerActive = false;
    document.getElementById('stages').style.display = 'none';
    showMessage($escaped_message, 'success');
    return;
  }
  currentStageIndex = stage + 1;
  document.getElementById('stage' + currentStageIndex).style.display = 'block';
}

function checkStage(stage) {
  if (!timerActive || pendingAdvance || stage !== currentStageIndex) return;
  var block = document.getElementById('stage' + stage);
  var feedback = document.getElementById('feedback' + stage);
  var input = normalizeAnswer(document.getElementById('code' + stage).value);
  var solution = normalizeAnswer(decodeSolution(block.getAttribute('data-solution')));

  if (checkAnswer(input, solution)) {
    feedback.textContent = $correct_feedback;
    feedback.className = 'feedback success';
    pendingAdvance = true;
    setTimeout(function () { advance(stage); }, ADVANCE_DELAY_MS);
  } else {
    feedback.textContent = $incorrect_feedback;
    feedback.className = 'feedback failure';
  }
}

tick();
"""
