"""
Authoring-side state: the escape room preview machine and the tab panel builder.

EscapeRoomBuilder mirrors the exported runtime inside the tool using the shared
rules from quiz_rules.py. The clock is injected (milliseconds) so tests can move
time by hand.

TabBuilder keeps its state in an injected key/value storage instead of touching
any global store directly.
"""

import json
import os
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional, Protocol, Union

from pydantic import ValidationError

from challenges import PRESETS, build_challenges, get_preset
from errors import ConfigurationError, SessionStateError
from generator import generate_escape_room, generate_tabs_document
from logger import builder_logger
from models import ChallengeInstance, ChallengeType, GeneratedDocument, SessionConfig, TabPanel
import quiz_rules


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


# ============================================================================
# ESCAPE ROOM PREVIEW
# ============================================================================

class AuthoringMode(str, Enum):
    SETUP = "setup"
    GAME = "game"


class TimerSnapshot(NamedTuple):
    remaining_ms: int
    display: str
    urgent: bool
    active: bool
    just_expired: bool


class AnswerResult(NamedTuple):
    correct: bool
    feedback: str
    stage_index: int


class EscapeRoomBuilder:
    """
    Two modes:
      setup - edit room name, time limit and the ordered challenge selection
      game  - play the assembled stages against the clock

    A correct answer does not advance immediately: the advance is due
    ADVANCE_DELAY_MS later and is applied by the first tick() at or after that
    time (or straight away by advance()).
    """

    def __init__(
        self,
        room_name: str = "Escape Room Challenge",
        time_limit_minutes: int = 10,
        selected_type_ids: Optional[List[ChallengeType]] = None,
        clock: Callable[[], int] = wall_clock_ms,
    ):
        initial = SessionConfig(
            room_name=room_name,
            time_limit_minutes=time_limit_minutes,
            selected_type_ids=selected_type_ids or [ChallengeType.FORMAT],
        )
        self._clock = clock
        self.room_name = initial.room_name
        self.time_limit_minutes = initial.time_limit_minutes
        self.selected_type_ids: List[ChallengeType] = list(initial.selected_type_ids)

        self.mode = AuthoringMode.SETUP
        self.completed = False
        self.challenges: List[ChallengeInstance] = []
        self._reset_game_state()

    def _reset_game_state(self):
        self.current_stage_index = 0
        self.user_input = ""
        self.feedback = ""
        self.message = ""
        self.timer_active = False
        self.start_ms: Optional[int] = None
        self.escape_time_ms: Optional[int] = None
        self._stopped_remaining_ms = 0
        self._advance_due_ms: Optional[int] = None

    # --- Setup mode ---

    @property
    def config(self) -> SessionConfig:
        return SessionConfig(
            room_name=self.room_name,
            time_limit_minutes=self.time_limit_minutes,
            selected_type_ids=self.selected_type_ids,
        )

    def _require_mode(self, mode: AuthoringMode):
        if self.mode != mode:
            raise SessionStateError(f"Operation requires {mode.value} mode (currently {self.mode.value})")

    def _validated(self, **changes) -> SessionConfig:
        """Validate a candidate config; nothing is assigned if it fails."""
        candidate = {
            "room_name": self.room_name,
            "time_limit_minutes": self.time_limit_minutes,
            "selected_type_ids": self.selected_type_ids,
            **changes,
        }
        try:
            return SessionConfig(**candidate)
        except ValidationError as e:
            first = e.errors()[0]
            raise ConfigurationError(f"{'.'.join(str(p) for p in first['loc'])}: {first['msg']}") from e

    def configure(self, room_name: Optional[str] = None, time_limit_minutes: Optional[int] = None):
        """Update name and/or time limit together; on error neither is changed."""
        self._require_mode(AuthoringMode.SETUP)
        changes = {}
        if room_name is not None:
            changes["room_name"] = room_name
        if time_limit_minutes is not None:
            changes["time_limit_minutes"] = time_limit_minutes
        config = self._validated(**changes)
        self.room_name = config.room_name
        self.time_limit_minutes = config.time_limit_minutes

    def toggle_challenge(self, type_id: Union[ChallengeType, str]) -> bool:
        """
        Add the type at the end of the selection or remove it.
        Returns False (and changes nothing) when asked to remove the last selected type.
        """
        self._require_mode(AuthoringMode.SETUP)
        type_id = ChallengeType(type_id)
        if type_id in self.selected_type_ids:
            if len(self.selected_type_ids) == 1:
                builder_logger.info(f"Kept '{type_id.value}': at least one challenge must stay selected")
                return False
            self.selected_type_ids = [t for t in self.selected_type_ids if t != type_id]
        else:
            self.selected_type_ids = self.selected_type_ids + [type_id]
        return True

    def apply_preset(self, name: str):
        """Replace both the selection and the time limit with the preset's."""
        self._require_mode(AuthoringMode.SETUP)
        if name not in PRESETS:
            raise ConfigurationError(f"Unknown preset: {name}")
        preset = get_preset(name)
        self.selected_type_ids = list(preset.type_ids)
        self.time_limit_minutes = preset.time_limit_minutes
        builder_logger.info(f"🎚️ Preset '{name}' applied: {len(preset.type_ids)} challenges, {preset.time_limit_minutes} min")

    # --- Transitions ---

    def start_game(self):
        self._require_mode(AuthoringMode.SETUP)
        config = self._validated()
        self.challenges = build_challenges(config.selected_type_ids)
        self._reset_game_state()
        self.completed = False
        self.mode = AuthoringMode.GAME
        self.start_ms = self._clock()
        self.timer_active = True
        self.user_input = self.challenges[0].starter_text
        builder_logger.info(f"🚀 Preview started: '{self.room_name}', {len(self.challenges)} stages, {self.time_limit_minutes} min")

    def return_to_setup(self):
        """Always allowed. Halts the timer and throws away the in-progress game."""
        if self.mode == AuthoringMode.GAME and self.timer_active:
            builder_logger.info(f"⏹️ Preview stopped at stage {self.current_stage_index + 1}")
        self.mode = AuthoringMode.SETUP
        self.challenges = []
        self.completed = False
        self._reset_game_state()

    # --- Game mode ---

    @property
    def time_limit_ms(self) -> int:
        return self.time_limit_minutes * 60_000

    @property
    def current_challenge(self) -> Optional[ChallengeInstance]:
        if self.mode != AuthoringMode.GAME or self.completed:
            return None
        return self.challenges[self.current_stage_index]

    @property
    def advance_pending(self) -> bool:
        return self._advance_due_ms is not None

    def remaining_ms(self, now_ms: Optional[int] = None) -> int:
        if self.mode != AuthoringMode.GAME:
            return self.time_limit_ms
        if not self.timer_active:
            return self._stopped_remaining_ms
        now_ms = self._clock() if now_ms is None else now_ms
        return quiz_rules.compute_remaining(self.start_ms, self.time_limit_ms, now_ms)

    def _stop_timer(self, remaining_ms: int):
        self.timer_active = False
        self._stopped_remaining_ms = remaining_ms

    def tick(self) -> TimerSnapshot:
        """Apply a due advance, then recompute the remaining time from the start timestamp."""
        just_expired = False
        if self.mode == AuthoringMode.GAME and self.timer_active:
            now_ms = self._clock()
            due_ms = self._advance_due_ms
            if due_ms is not None and due_ms <= now_ms:
                if quiz_rules.compute_remaining(self.start_ms, self.time_limit_ms, due_ms) > 0:
                    self._advance(due_ms)
                else:
                    self._advance_due_ms = None

            if self.timer_active:
                remaining = self.remaining_ms(now_ms)
                if remaining == 0:
                    self._stop_timer(0)
                    self._advance_due_ms = None
                    self.message = quiz_rules.TIME_UP_MESSAGE
                    just_expired = True
                    builder_logger.info(f"⏰ Preview time is up at stage {self.current_stage_index + 1}")

        remaining = self.remaining_ms()
        return TimerSnapshot(
            remaining_ms=remaining,
            display=quiz_rules.format_remaining(remaining),
            urgent=self.mode == AuthoringMode.GAME and quiz_rules.is_urgent(remaining),
            active=self.timer_active,
            just_expired=just_expired,
        )

    def submit_answer(self, user_input: str) -> AnswerResult:
        """Judge the current stage. Rejected once the timer has stopped or while an advance is pending."""
        self._require_mode(AuthoringMode.GAME)
        if not self.timer_active:
            raise SessionStateError("The timer has stopped; answers are no longer accepted")
        if self.advance_pending:
            raise SessionStateError("Already moving to the next stage")

        self.user_input = user_input
        challenge = self.challenges[self.current_stage_index]
        correct = quiz_rules.is_correct(user_input, challenge.canonical_solution)
        if correct:
            self.feedback = quiz_rules.CORRECT_FEEDBACK
            self._advance_due_ms = self._clock() + quiz_rules.ADVANCE_DELAY_MS
        else:
            self.feedback = quiz_rules.INCORRECT_FEEDBACK

        builder_logger.info(f"Stage {self.current_stage_index + 1} ({challenge.instance_id}): {'correct' if correct else 'incorrect'}")
        return AnswerResult(correct=correct, feedback=self.feedback, stage_index=self.current_stage_index)

    def advance(self):
        """Apply a pending advance now instead of waiting for the delay."""
        self._require_mode(AuthoringMode.GAME)
        if not self.advance_pending:
            raise SessionStateError("No correct answer is waiting to advance")
        self._advance(self._clock())

    def _advance(self, at_ms: int):
        self._advance_due_ms = None
        if self.current_stage_index + 1 >= len(self.challenges):
            self.completed = True
            self.escape_time_ms = at_ms - self.start_ms
            self._stop_timer(quiz_rules.compute_remaining(self.start_ms, self.time_limit_ms, at_ms))
            self.message = quiz_rules.ESCAPED_MESSAGE
            builder_logger.info(f"🎉 Preview escaped in {quiz_rules.format_remaining(self.escape_time_ms)}")
            return

        self.current_stage_index += 1
        self.user_input = self.challenges[self.current_stage_index].starter_text
        self.feedback = ""

    # --- Export ---

    def generate(self) -> GeneratedDocument:
        """Only available once the preview has been completed."""
        if not self.completed:
            raise SessionStateError("Complete the preview before generating the escape room")
        return generate_escape_room(self.config, self.challenges)


# ============================================================================
# TAB PANEL BUILDER
# ============================================================================

MAX_TABS = 15
STORAGE_KEY = "cwa-tabs"
ACTIVE_KEY = "cwa-active"


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStorage:
    """All keys live in one JSON object on disk, rewritten on every set()."""

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            builder_logger.warning(f"Ignoring unreadable tab state file {self.path}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")


class TabBuilder:

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.tabs: List[TabPanel] = [TabPanel(id=1, label="Step 1")]
        self.active = 1
        self._restore()

    def _restore(self):
        saved = self.storage.get(STORAGE_KEY)
        if saved:
            try:
                tabs = [TabPanel(**item) for item in json.loads(saved)]
            except (json.JSONDecodeError, TypeError, ValidationError):
                builder_logger.warning("Ignoring corrupt saved tabs")
                tabs = []
            if tabs:
                self.tabs = tabs[:MAX_TABS]

        active = self.storage.get(ACTIVE_KEY)
        if active and active.isdigit() and self._find(int(active)) is not None:
            self.active = int(active)
        else:
            self.active = self.tabs[0].id

    def _save(self):
        self.storage.set(STORAGE_KEY, json.dumps([tab.model_dump() for tab in self.tabs]))
        self.storage.set(ACTIVE_KEY, str(self.active))

    def _find(self, tab_id: int) -> Optional[TabPanel]:
        return next((tab for tab in self.tabs if tab.id == tab_id), None)

    @property
    def active_tab(self) -> TabPanel:
        return self._find(self.active)

    def add_tab(self) -> Optional[TabPanel]:
        """Append "Step <n>" and make it active. Returns None when MAX_TABS is reached."""
        if len(self.tabs) >= MAX_TABS:
            return None
        next_id = max(tab.id for tab in self.tabs) + 1
        tab = TabPanel(id=next_id, label=f"Step {next_id}")
        self.tabs.append(tab)
        self.active = next_id
        self._save()
        return tab

    def remove_tab(self, tab_id: int) -> bool:
        if len(self.tabs) <= 1 or self._find(tab_id) is None:
            return False
        self.tabs = [tab for tab in self.tabs if tab.id != tab_id]
        if self.active == tab_id:
            self.active = self.tabs[0].id
        self._save()
        return True

    def update_tab(self, tab_id: int, label: Optional[str] = None, content: Optional[str] = None):
        tab = self._find(tab_id)
        if tab is None:
            raise ConfigurationError(f"No tab with id {tab_id}")
        if label is not None:
            tab.label = label
        if content is not None:
            tab.content = content
        self._save()

    def set_active(self, tab_id: int):
        if self._find(tab_id) is None:
            raise ConfigurationError(f"No tab with id {tab_id}")
        self.active = tab_id
        self._save()

    def generate(self) -> GeneratedDocument:
        return generate_tabs_document(self.tabs)
