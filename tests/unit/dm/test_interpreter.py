"""Tests for the narrator response interpreter."""

from __future__ import annotations

import json

import pytest

from dungeon_companion.core.constants import CONTINUE_HINT, FALLBACK_SUGGESTED_ACTIONS
from dungeon_companion.dm.interpreter import (
    GameUpdates,
    RollRequest,
    extract_json,
    interpret_response,
    strip_code_fences,
    updates_to_actions,
)
from dungeon_companion.engine.actions import (
    AddGold,
    AddItem,
    AddNpc,
    AddQuest,
    DeathSave,
    EndCombat,
    EnemyTakeDamage,
    GainXp,
    Heal,
    RemoveItem,
    StartCombat,
    TakeDamage,
    UpdateLocation,
)
from dungeon_companion.models import DieType, RollRequestType


class TestExtractJson:
    """Tests for the three-tier JSON extraction."""

    def test_direct_parse(self) -> None:
        """Test a bare object is parsed directly."""
        assert extract_json('  {"narrative": "Hi"}  ') == {"narrative": "Hi"}

    def test_fenced_block(self) -> None:
        """Test the object inside a json code fence is extracted."""
        text = (
            '```json\n{"narrative":"Hi","rollRequest":null,'
            '"suggestedActions":["Go"],"gameUpdates":null}\n```'
        )

        data = extract_json(text)

        assert data is not None
        assert data["narrative"] == "Hi"

    def test_object_inside_prose(self) -> None:
        """Test a balanced object surrounded by prose is found."""
        text = 'Sure! Here you go: {"narrative": "The {door} opens", "x": {"y": 1}} Enjoy.'

        assert extract_json(text) == {"narrative": "The {door} opens", "x": {"y": 1}}

    def test_skips_unparseable_candidates(self) -> None:
        """Test the scan moves past a broken object to the next one."""
        text = 'Noise {not json} then {"narrative": "ok"}'

        assert extract_json(text) == {"narrative": "ok"}

    @pytest.mark.parametrize("text", ["just prose", '{"narrative": "cut off', "[1, 2, 3]", ""])
    def test_no_object(self, text: str) -> None:
        """Test None when no JSON object can be found."""
        assert extract_json(text) is None


class TestInterpretResponse:
    """Tests for full reply interpretation."""

    def test_structured_reply(self) -> None:
        """Test narrative, suggestions, roll request and updates are surfaced."""
        reply = interpret_response(
            json.dumps(
                {
                    "narrative": "A goblin attacks!",
                    "suggestedActions": ["Fight", "Flee"],
                    "rollRequest": {
                        "type": "initiative",
                        "dice": "d20",
                        "modifier": 1,
                        "reason": "Initiative",
                    },
                    "gameUpdates": {"startCombat": [{"name": "Goblin", "hp": 7, "maxHp": 7}]},
                }
            )
        )

        assert reply.structured
        assert reply.narrative == "A goblin attacks!"
        assert reply.suggested_actions == ("Fight", "Flee")
        assert reply.roll_request is not None
        assert reply.roll_request.type == RollRequestType.INITIATIVE
        assert reply.game_updates is not None
        assert reply.game_updates.start_combat is not None

    def test_freeform_fallback(self) -> None:
        """Test non-JSON replies become narrative with fallback suggestions."""
        reply = interpret_response("```\nThe wind howls.\n```")

        assert not reply.structured
        assert reply.narrative == "The wind howls."
        assert reply.suggested_actions == FALLBACK_SUGGESTED_ACTIONS
        assert reply.roll_request is None
        assert reply.game_updates is None

    def test_missing_suggestions_use_continue_hint(self) -> None:
        """Test absent suggestedActions default to the continuation hint."""
        reply = interpret_response('{"narrative": "Onward."}')

        assert reply.suggested_actions == (CONTINUE_HINT,)

    def test_missing_narrative_uses_raw_text(self) -> None:
        """Test a JSON reply without narrative falls back to the raw text."""
        raw = '{"suggestedActions": ["Wait"]}'

        assert interpret_response(raw).narrative == raw

    def test_invalid_roll_request_dropped(self) -> None:
        """Test a non-object rollRequest is treated as absent."""
        reply = interpret_response('{"narrative": "Hm.", "rollRequest": "roll a d20"}')

        assert reply.roll_request is None


class TestGameUpdates:
    """Tests for patch decoding."""

    def test_invalid_fields_become_absent(self) -> None:
        """Test wrongly typed fields degrade to None instead of failing."""
        updates = GameUpdates.model_validate(
            {"damage": "lots", "healing": -3, "location": 42, "xp": 50}
        )

        assert updates.damage is None
        assert updates.healing is None
        assert updates.location is None
        assert updates.xp == 50

    def test_item_lists_keep_strings(self) -> None:
        """Test non-string items are dropped from item lists."""
        updates = GameUpdates.model_validate({"addItems": ["Rope", 3, None, "Torch"]})

        assert updates.add_items == ("Rope", "Torch")

    def test_invalid_enemies_dropped(self) -> None:
        """Test enemies without a name are dropped from startCombat."""
        updates = GameUpdates.model_validate(
            {"startCombat": [{"name": "Goblin", "hp": 7}, {"hp": 3}]}
        )

        assert updates.start_combat is not None
        assert [enemy.name for enemy in updates.start_combat] == ["Goblin"]


class TestUpdatesToActions:
    """Tests for patch-to-action translation."""

    def test_fixed_order(self) -> None:
        """Test every field maps to its action in the documented order."""
        updates = GameUpdates.model_validate(
            {
                "deathSave": True,
                "enemyDamage": {"index": 0, "amount": 4},
                "endCombat": True,
                "startCombat": [{"name": "Wolf", "hp": 11, "maxHp": 11}],
                "quest": "Slay the wolf",
                "newNPC": "Hunter Bram",
                "location": "Forest",
                "removeItems": ["Ration"],
                "addItems": ["Pelt", "Fang"],
                "gold": 5,
                "xp": 50,
                "healing": 2,
                "damage": 3,
            }
        )

        actions = updates_to_actions(updates)

        assert [type(action) for action in actions] == [
            TakeDamage,
            Heal,
            GainXp,
            AddGold,
            AddItem,
            AddItem,
            RemoveItem,
            UpdateLocation,
            AddNpc,
            AddQuest,
            StartCombat,
            EndCombat,
            EnemyTakeDamage,
            DeathSave,
        ]
        assert actions[4] == AddItem(item="Pelt")
        assert actions[5] == AddItem(item="Fang")

    def test_zero_values_are_no_update(self) -> None:
        """Test damage: 0 and other falsy values produce no actions."""
        updates = GameUpdates.model_validate(
            {"damage": 0, "healing": 0, "xp": 0, "gold": 0, "location": "", "endCombat": False}
        )

        assert updates_to_actions(updates) == []

    def test_failed_death_save_applies(self) -> None:
        """Test deathSave: false is a failed save, not an absent field."""
        updates = GameUpdates.model_validate({"deathSave": False})

        assert updates_to_actions(updates) == [DeathSave(success=False)]

    def test_none_patch(self) -> None:
        """Test a missing patch yields no actions."""
        assert updates_to_actions(None) == []


class TestRollRequest:
    """Tests for roll request resolution."""

    def test_modifier_folded_into_roll(self) -> None:
        """Test the narrator's flat modifier is added to the notation's."""
        request = RollRequest.model_validate(
            {"type": "damage", "dice": "2d6+1", "modifier": 2, "reason": "Greataxe"}
        )

        roll = request.to_dice_roll()

        assert (roll.die, roll.count, roll.modifier) == (DieType.D6, 2, 3)
        assert roll.reason == "Greataxe"

    def test_unparseable_dice_falls_back_to_d20(self) -> None:
        """Test unknown notation rolls a d20."""
        roll = RollRequest.model_validate({"dice": "a handful"}).to_dice_roll()

        assert roll.die == DieType.D20
        assert roll.count == 1

    def test_oversized_dice_count_falls_back_to_d20(self) -> None:
        """Test a request for an absurd number of dice rolls a single d20."""
        roll = RollRequest.model_validate({"dice": "100000000d6"}).to_dice_roll()

        assert roll.die == DieType.D20
        assert roll.count == 1

    def test_unknown_type_absent(self) -> None:
        """Test an unrecognized roll type becomes None."""
        request = RollRequest.model_validate({"type": "vibe_check", "dc": 12})

        assert request.type is None
        assert request.dc == 12


class TestStripCodeFences:
    """Tests for fence marker removal."""

    def test_removes_markers_only(self) -> None:
        """Test fence markers are removed and content kept."""
        assert strip_code_fences("```json\nhello\n```") == "hello"
