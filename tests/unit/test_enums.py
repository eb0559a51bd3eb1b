"""Tests for pm_common.enums: values are the WebSocket wire strings."""

from src.pm_common.enums import RelayMessageType, RoundEventType, RoundPhase


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) for JSON serialization."""

    def test_round_phase_is_str(self) -> None:
        assert isinstance(RoundPhase.BETTING, str)
        assert RoundPhase.BETTING == "BETTING"

    def test_event_type_is_str(self) -> None:
        assert isinstance(RoundEventType.ROUND_END, str)
        assert RoundEventType.ROUND_END == "ROUND_END"


class TestValues:
    def test_round_phase(self) -> None:
        assert [p.value for p in RoundPhase] == ["BETTING", "LIVE", "SETTLING"]

    def test_round_event_type(self) -> None:
        expected = {"ROUND_START", "PHASE_CHANGE", "PRICE_UPDATE", "ROUND_END"}
        assert {t.value for t in RoundEventType} == expected

    def test_relay_message_type(self) -> None:
        expected = {"CONNECTED", "SUBSCRIBE", "SUBSCRIBED", "UNSUBSCRIBE"}
        assert {t.value for t in RelayMessageType} == expected
