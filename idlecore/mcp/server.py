"""MCP server wrapping GameRuntime for interactive AI playtesting."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP

from idlecore import economy
from idlecore.clock import ManualClock, ManualFrameScheduler
from idlecore.config import GameConfig
from idlecore.offline import OfflineProgressResult
from idlecore.resource import RESOURCE_IDS
from idlecore.runtime import GameRuntime
from idlecore.upgrade import UpgradeCategory

# Maximum seconds per wait() call (24 hours)
_MAX_WAIT = 86400
# Maximum seconds per go_offline() call (30 days)
_MAX_OFFLINE = 30 * 86400
# Played time is simulated in whole-second frames
_FRAME_MS = 1000
_START_EPOCH_MS = 1_700_000_000_000


@dataclass
class _GameHolder:
    """Holds the active runtime and the manual time sources driving it."""

    config: GameConfig
    runtime: GameRuntime
    clock: ManualClock
    frames: ManualFrameScheduler


def _new_holder(config: GameConfig | None = None) -> _GameHolder:
    config = config or GameConfig()
    clock = ManualClock(_START_EPOCH_MS)
    frames = ManualFrameScheduler(clock, frame_ms=_FRAME_MS)
    runtime = GameRuntime(config, clock=clock, frames=frames)
    runtime.start()
    return _GameHolder(config=config, runtime=runtime, clock=clock, frames=frames)


def _resources(holder: _GameHolder) -> dict[str, dict[str, str]]:
    state = holder.runtime.state
    return {
        rid: {
            "value": state.resource(rid),
            "formatted": economy.format_resource(rid, state.resource(rid)),
        }
        for rid in RESOURCE_IDS
    }


def _offline_summary(result: OfflineProgressResult) -> dict[str, Any]:
    return {
        "was_calculated": result.was_calculated,
        "needs_acknowledgement": result.should_show_modal,
        "time_away": result.formatted_time_away,
        "total_seconds_away": result.total_seconds_away,
        "effective_seconds": result.effective_seconds,
        "was_capped": result.was_capped,
        "efficiency": economy.format_percent(result.efficiency),
        "earnings": {rid: v for rid, v in result.earnings.items() if economy.is_positive(v)},
        "automation_triggers": dict(result.automation_triggers),
        "automation_applied": dict(result.automation_applied),
    }


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_game_state(holder: _GameHolder) -> dict[str, Any]:
    runtime = holder.runtime
    state = runtime.state
    now = holder.clock.now_ms()
    automations = {
        d.id: {
            "unlocked": runtime.scheduler.is_unlocked(state, d.id),
            "enabled": runtime.scheduler.is_enabled(state, d.id),
            "status": runtime.scheduler.status(state, d.id, now).name,
        }
        for d in runtime.scheduler.definitions
    }
    return {
        "resources": _resources(holder),
        "rates": runtime.rates(),
        "rate": runtime.engine.formatted_rate,
        "minigames": {mid: asdict(ms) for mid, ms in state.minigames.items()},
        "automations": automations,
        "play_time_ms": state.stats.total_play_time_ms,
        "offline_time_ms": state.stats.total_offline_time_ms,
        "pending_offline": runtime.pending_offline is not None,
    }


def _tool_get_upgrades(holder: _GameHolder, category: str | None = None) -> dict[str, Any]:
    cat = None
    if category is not None:
        try:
            cat = UpgradeCategory(category)
        except ValueError:
            return {"error": f"Unknown category: {category!r}"}

    upgrades = []
    for info in holder.runtime.upgrade_info(cat):
        entry = asdict(info)
        entry["category"] = info.category.value
        upgrades.append(entry)
    return {"upgrades": upgrades}


def _tool_purchase(holder: _GameHolder, upgrade_id: str) -> dict[str, Any]:
    if holder.runtime.catalog.get(upgrade_id) is None:
        return {"error": f"Unknown upgrade: {upgrade_id!r}"}

    result = holder.runtime.purchase(upgrade_id)
    if not result.success:
        return {"success": False, "reason": result.reason}
    return {
        "success": True,
        "upgrade_id": upgrade_id,
        "new_level": result.level,
        "paid": result.costs,
        "resources": _resources(holder),
    }


def _tool_record_score(holder: _GameHolder, minigame_id: str, score: str) -> dict[str, Any]:
    if not economy.is_valid_decimal_string(score):
        return {"error": f"Invalid score: {score!r}"}
    if economy.is_negative(score):
        return {"error": "Score must not be negative"}

    holder.runtime.record_score(minigame_id, score)
    return {
        "minigame_id": minigame_id,
        "top_scores": holder.runtime.state.top_scores(minigame_id),
        "rate": holder.runtime.engine.formatted_rate,
    }


def _tool_wait(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_WAIT:
        return {"error": f"Cannot wait more than {_MAX_WAIT} seconds (24h) per call"}
    if not holder.runtime.engine.is_running:
        holder.runtime.start()

    state = holder.runtime.state
    before = dict(state.resources)
    frames = holder.frames.run_for(int(seconds * 1000))
    changes = {
        rid: economy.subtract(state.resource(rid), before.get(rid, economy.ZERO))
        for rid in RESOURCE_IDS
    }
    return {
        "waited": seconds,
        "frames": frames,
        "changes": {rid: v for rid, v in changes.items() if not economy.is_zero(v)},
        "resources": _resources(holder),
    }


def _tool_go_offline(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_OFFLINE:
        return {"error": f"Cannot go offline for more than {_MAX_OFFLINE} seconds per call"}
    if holder.runtime.pending_offline is not None:
        return {"error": "Acknowledge the pending offline progress first"}

    holder.runtime.suspend()
    holder.clock.advance(int(seconds * 1000))
    result = holder.runtime.resume_session()
    holder.runtime.start()

    summary = _offline_summary(result)
    summary["resources"] = _resources(holder)
    return summary


def _tool_acknowledge_offline(holder: _GameHolder) -> dict[str, Any]:
    result = holder.runtime.acknowledge_offline()
    if result is None:
        return {"success": False, "reason": "No pending offline progress"}
    summary = _offline_summary(result)
    summary["success"] = True
    summary["resources"] = _resources(holder)
    return summary


def _tool_toggle_automation(holder: _GameHolder, automation_id: str) -> dict[str, Any]:
    scheduler = holder.runtime.scheduler
    if scheduler.get(automation_id) is None:
        return {"error": f"Unknown automation: {automation_id!r}"}
    if not scheduler.is_unlocked(holder.runtime.state, automation_id):
        return {"success": False, "reason": "Automation is locked"}

    enabled = holder.runtime.toggle_automation(automation_id)
    return {"success": True, "automation_id": automation_id, "enabled": enabled}


def _tool_new_game(holder: _GameHolder) -> dict[str, Any]:
    fresh = _new_holder(holder.config)
    holder.runtime.engine.destroy()
    holder.runtime = fresh.runtime
    holder.clock = fresh.clock
    holder.frames = fresh.frames
    return {"success": True, "message": "Game reset to initial state"}


# ── Server factory ──────────────────────────────────────────────────


def create_server(config: GameConfig | None = None) -> FastMCP:
    """Create an MCP server wrapping a GameRuntime driven by a manual clock."""
    holder = _new_holder(config)

    mcp = FastMCP(
        name=f"idlecore: {holder.config.name}",
    )

    @mcp.tool()
    def get_game_state() -> dict[str, Any]:
        """Get current state: balances, rates, minigame scores, automations, play time."""
        return _tool_get_game_state(holder)

    @mcp.tool()
    def get_upgrades(category: str | None = None) -> dict[str, Any]:
        """List upgrades with level, next cost, effect and affordability. Optionally filter by category."""
        return _tool_get_upgrades(holder, category)

    @mcp.tool()
    def purchase(upgrade_id: str) -> dict[str, Any]:
        """Buy one level of an upgrade. Returns success/failure with reason."""
        return _tool_purchase(holder, upgrade_id)

    @mcp.tool()
    def record_score(minigame_id: str, score: str) -> dict[str, Any]:
        """Record a finished minigame run. Top scores drive passive generation."""
        return _tool_record_score(holder, minigame_id, score)

    @mcp.tool()
    def wait(seconds: float) -> dict[str, Any]:
        """Play for the given seconds (max 86400), one frame per second."""
        return _tool_wait(holder, seconds)

    @mcp.tool()
    def go_offline(seconds: float) -> dict[str, Any]:
        """Close the game for the given seconds, then resume and catch up."""
        return _tool_go_offline(holder, seconds)

    @mcp.tool()
    def acknowledge_offline() -> dict[str, Any]:
        """Dismiss the welcome-back summary and collect the offline earnings."""
        return _tool_acknowledge_offline(holder)

    @mcp.tool()
    def toggle_automation(automation_id: str) -> dict[str, Any]:
        """Enable or disable an unlocked automation."""
        return _tool_toggle_automation(holder, automation_id)

    @mcp.tool()
    def new_game() -> dict[str, Any]:
        """Reset the game to initial state."""
        return _tool_new_game(holder)

    return mcp
