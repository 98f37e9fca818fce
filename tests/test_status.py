"""Tests for packed status decoding and comparison (status.py).

Covers:
- Bit layout: mobile in the low pair, web in the high pair
- Every status in [0, 63] decodes to one of the four symbols per platform
- Self-comparison is empty and comparison is antisymmetric
- Out-of-range statuses are rejected
"""

from __future__ import annotations

import pytest

from presence_timeline.models import Platform, PresenceStatus, StatusTransition
from presence_timeline.status import compare_statuses, decode_status, has_changes

ALL_STATUSES = range(0, 64)


class TestDecodeStatus:
    def test_bit_layout(self) -> None:
        decoded = decode_status(0b100111)
        assert decoded[Platform.MOBILE] is PresenceStatus.DND
        assert decoded[Platform.DESKTOP] is PresenceStatus.IDLE
        assert decoded[Platform.WEB] is PresenceStatus.ONLINE

    def test_table_order(self) -> None:
        assert [decode_status(value)[Platform.MOBILE] for value in range(4)] == [
            PresenceStatus.OFFLINE,
            PresenceStatus.IDLE,
            PresenceStatus.ONLINE,
            PresenceStatus.DND,
        ]

    def test_desktop_online(self) -> None:
        decoded = decode_status(0b001000)
        assert decoded == {
            Platform.WEB: PresenceStatus.OFFLINE,
            Platform.DESKTOP: PresenceStatus.ONLINE,
            Platform.MOBILE: PresenceStatus.OFFLINE,
        }

    @pytest.mark.parametrize("status", ALL_STATUSES)
    def test_every_status_decodes(self, status: int) -> None:
        decoded = decode_status(status)
        assert set(decoded) == set(Platform)
        assert all(isinstance(value, PresenceStatus) for value in decoded.values())
        assert decoded[Platform.MOBILE] is decode_status(status & 0b11)[Platform.MOBILE]

    @pytest.mark.parametrize("status", [-1, 64, 255])
    def test_out_of_range_rejected(self, status: int) -> None:
        with pytest.raises(ValueError):
            decode_status(status)


class TestCompareStatuses:
    def test_self_comparison_is_empty(self) -> None:
        for status in ALL_STATUSES:
            diff = compare_statuses(status, status)
            assert all(transition is None for transition in diff.values())
            assert not has_changes(diff)

    def test_reports_only_changed_platforms(self) -> None:
        diff = compare_statuses(0b001000, 0b001001)
        assert diff[Platform.WEB] is None
        assert diff[Platform.DESKTOP] is None
        assert diff[Platform.MOBILE] == StatusTransition(
            old=PresenceStatus.OFFLINE, new=PresenceStatus.IDLE
        )

    def test_reverse_comparison_swaps_old_and_new(self) -> None:
        for old in ALL_STATUSES:
            for new in (0, 9, 21, 42, 63):
                forward = compare_statuses(old, new)
                backward = compare_statuses(new, old)
                assert forward.keys() == backward.keys()
                for platform, transition in forward.items():
                    reverse = backward[platform]
                    if transition is None:
                        assert reverse is None
                    else:
                        assert reverse == StatusTransition(old=transition.new, new=transition.old)


class TestPresenceStatusLabel:
    def test_labels(self) -> None:
        assert PresenceStatus.OFFLINE.label == "오프라인"
        assert PresenceStatus.IDLE.label == "자리비움"
        assert PresenceStatus.ONLINE.label == "온라인"
        assert PresenceStatus.DND.label == "방해금지"
