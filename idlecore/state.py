from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from idlecore import economy
from idlecore._types import DecimalInput
from idlecore.resource import RESOURCE_IDS, ResourceType, resource_id

SAVE_VERSION = "2.1.0"
MAX_TOP_SCORES = 5

DEFAULT_MINIGAMES: tuple[str, ...] = ("code-breaker", "code-runner", "botnet-defense")


@dataclass
class MinigameState:
    """Mutable runtime state for a minigame."""

    unlocked: bool = False
    top_scores: list[str] = field(default_factory=list)
    play_count: int = 0
    upgrades: dict[str, int] = field(default_factory=dict)


@dataclass
class UpgradesState:
    """Purchased upgrade levels (repeatables) and flags (one-time)."""

    levels: dict[str, int] = field(default_factory=dict)
    flags: dict[str, bool] = field(default_factory=dict)


@dataclass
class AutomationState:
    enabled: bool = False
    last_triggered: int = 0


@dataclass
class SettingsState:
    offline_progress_enabled: bool = True


@dataclass
class StatsState:
    total_play_time_ms: int = 0
    total_offline_time_ms: int = 0
    total_resources_earned: dict[str, str] = field(
        default_factory=lambda: {rid: economy.ZERO for rid in RESOURCE_IDS}
    )


def insert_score(scores: list[str], new_score: str, limit: int = MAX_TOP_SCORES) -> list[str]:
    """Insert into a descending list, before the first strictly smaller score, then trim."""
    result = list(scores)
    index = len(result)
    for i, existing in enumerate(result):
        if economy.is_greater_than(new_score, existing):
            index = i
            break
    result.insert(index, new_score)
    return result[:limit]


class GameState:
    """Mutable state store holding everything the core reads and writes."""

    def __init__(self, now_ms: int = 0, max_top_scores: int = MAX_TOP_SCORES) -> None:
        self.version: str = SAVE_VERSION
        self.last_saved: int = now_ms
        self.last_played: int = now_ms
        self.player_name: str = ""
        self.max_top_scores = max_top_scores

        self.resources: dict[str, str] = {rid: economy.ZERO for rid in RESOURCE_IDS}
        self.minigames: dict[str, MinigameState] = {
            mid: MinigameState(unlocked=True) for mid in DEFAULT_MINIGAMES
        }
        self.upgrades = UpgradesState()
        self.automations: dict[str, AutomationState] = {}
        self.settings = SettingsState()
        self.stats = StatsState()

    # ── Resources ────────────────────────────────────────────────────

    def resource(self, resource: ResourceType | str) -> str:
        return self.resources.get(resource_id(resource), economy.ZERO)

    def add_resource(self, resource: ResourceType | str, amount: DecimalInput) -> None:
        rid = resource_id(resource)
        self.resources[rid] = economy.add(self.resource(rid), amount)

    def subtract_resource(self, resource: ResourceType | str, amount: DecimalInput) -> bool:
        """Debit *amount* if the balance covers it. Returns False and leaves
        the balance untouched otherwise."""
        rid = resource_id(resource)
        current = self.resource(rid)
        if economy.is_less_than(current, amount):
            return False
        self.resources[rid] = economy.maximum(economy.subtract(current, amount), economy.ZERO)
        return True

    def set_resource(self, resource: ResourceType | str, amount: DecimalInput) -> None:
        self.resources[resource_id(resource)] = economy.to_storage(economy.to_decimal(amount))

    # ── Minigames ────────────────────────────────────────────────────

    def ensure_minigame_state(self, minigame_id: str) -> MinigameState:
        ms = self.minigames.get(minigame_id)
        if ms is None:
            ms = MinigameState()
            self.minigames[minigame_id] = ms
        return ms

    def record_score(self, minigame_id: str, score: DecimalInput) -> None:
        ms = self.ensure_minigame_state(minigame_id)
        stored = economy.to_storage(economy.to_decimal(score))
        ms.top_scores = insert_score(ms.top_scores, stored, self.max_top_scores)

    def increment_play_count(self, minigame_id: str) -> None:
        self.ensure_minigame_state(minigame_id).play_count += 1

    def unlock_minigame(self, minigame_id: str) -> None:
        self.ensure_minigame_state(minigame_id).unlocked = True

    def top_scores(self, minigame_id: str) -> list[str]:
        ms = self.minigames.get(minigame_id)
        return list(ms.top_scores) if ms else []

    # ── Upgrades ─────────────────────────────────────────────────────

    def upgrade_level(self, upgrade_id: str) -> int:
        return self.upgrades.levels.get(upgrade_id, 0)

    def increment_level(self, upgrade_id: str) -> int:
        level = self.upgrade_level(upgrade_id) + 1
        self.upgrades.levels[upgrade_id] = level
        return level

    def has_flag(self, upgrade_id: str) -> bool:
        return self.upgrades.flags.get(upgrade_id, False)

    def set_flag(self, upgrade_id: str) -> bool:
        """Set a one-time flag. Returns False if it was already set."""
        if self.has_flag(upgrade_id):
            return False
        self.upgrades.flags[upgrade_id] = True
        return True

    def subject_level(self, minigame_id: str, upgrade_id: str) -> int:
        ms = self.minigames.get(minigame_id)
        return ms.upgrades.get(upgrade_id, 0) if ms else 0

    def increment_subject_level(self, minigame_id: str, upgrade_id: str) -> int:
        ms = self.ensure_minigame_state(minigame_id)
        level = ms.upgrades.get(upgrade_id, 0) + 1
        ms.upgrades[upgrade_id] = level
        return level

    # ── Automations ──────────────────────────────────────────────────

    def enable_automation(self, automation_id: str, now: int) -> None:
        """Enable an automation, keeping its last trigger time if it has one."""
        existing = self.automations.get(automation_id)
        if existing is None:
            self.automations[automation_id] = AutomationState(enabled=True, last_triggered=now)
        else:
            existing.enabled = True

    def disable_automation(self, automation_id: str) -> None:
        existing = self.automations.get(automation_id)
        if existing is not None:
            existing.enabled = False

    def update_automation_trigger(self, automation_id: str, timestamp: int) -> None:
        existing = self.automations.get(automation_id)
        if existing is not None:
            existing.last_triggered = timestamp

    # ── Stats and bookkeeping ────────────────────────────────────────

    def add_play_time(self, ms: int) -> None:
        self.stats.total_play_time_ms += ms

    def add_offline_time(self, ms: int) -> None:
        self.stats.total_offline_time_ms += ms

    def track_resource_earned(self, resource: ResourceType | str, amount: DecimalInput) -> None:
        rid = resource_id(resource)
        earned = self.stats.total_resources_earned
        earned[rid] = economy.add(earned.get(rid, economy.ZERO), amount)

    def update_last_played(self, now: int) -> None:
        self.last_played = now

    def update_last_saved(self, now: int) -> None:
        self.last_saved = now

    def toggle_offline_progress(self) -> None:
        self.settings.offline_progress_enabled = not self.settings.offline_progress_enabled

    def set_player_name(self, name: str) -> None:
        self.player_name = name

    # ── Snapshot ─────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-compatible snapshot; decimals stay strings."""
        return {
            "version": self.version,
            "last_saved": self.last_saved,
            "last_played": self.last_played,
            "player_name": self.player_name,
            "resources": dict(self.resources),
            "minigames": {mid: asdict(ms) for mid, ms in self.minigames.items()},
            "upgrades": asdict(self.upgrades),
            "automations": {aid: asdict(a) for aid, a in self.automations.items()},
            "settings": asdict(self.settings),
            "stats": asdict(self.stats),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], max_top_scores: int = MAX_TOP_SCORES) -> GameState:
        state = cls(now_ms=data.get("last_played", 0), max_top_scores=max_top_scores)
        state.version = data.get("version", SAVE_VERSION)
        state.last_saved = data.get("last_saved", state.last_saved)
        state.player_name = data.get("player_name", "")

        for rid, value in data.get("resources", {}).items():
            state.set_resource(rid, value)

        minigames = data.get("minigames")
        if minigames is not None:
            state.minigames = {
                mid: MinigameState(
                    unlocked=ms.get("unlocked", False),
                    top_scores=list(ms.get("top_scores", [])),
                    play_count=ms.get("play_count", 0),
                    upgrades=dict(ms.get("upgrades", {})),
                )
                for mid, ms in minigames.items()
            }

        upgrades = data.get("upgrades", {})
        state.upgrades = UpgradesState(
            levels=dict(upgrades.get("levels", {})),
            flags=dict(upgrades.get("flags", {})),
        )
        state.automations = {
            aid: AutomationState(**a) for aid, a in data.get("automations", {}).items()
        }
        state.settings = SettingsState(**data.get("settings", {}))

        stats = data.get("stats", {})
        state.stats = StatsState(
            total_play_time_ms=stats.get("total_play_time_ms", 0),
            total_offline_time_ms=stats.get("total_offline_time_ms", 0),
        )
        state.stats.total_resources_earned.update(stats.get("total_resources_earned", {}))
        return state
