from datetime import datetime, time

from src.staff_management.staff_management.attendance.factory import CheckInStrategyFactory, delay_minutes
from src.staff_management.staff_management.attendance.strategies.excessive_delay_strategy import ExcessiveDelayStrategy
from src.staff_management.staff_management.attendance.strategies.late_strategy import LateStrategy
from src.staff_management.staff_management.attendance.strategies.on_time_strategy import OnTimeStrategy
from src.staff_management.staff_management.core.enums import AttendanceStatus


def test_delay_minutes_ignores_seconds_and_can_be_negative():
    assert delay_minutes(datetime(2025, 1, 1, 9, 10, 59), time(9, 0)) == 10
    assert delay_minutes(datetime(2025, 1, 1, 8, 45), time(9, 0)) == -15


def test_factory_on_time_within_grace():
    strategy = CheckInStrategyFactory().for_delay(10)

    assert isinstance(strategy, OnTimeStrategy)
    assert strategy.decide(delay_minutes=10).status == AttendanceStatus.PRESENT


def test_factory_late_after_grace():
    strategy = CheckInStrategyFactory().for_delay(11)
    decision = strategy.decide(delay_minutes=75)

    assert isinstance(strategy, LateStrategy)
    assert decision.status == AttendanceStatus.LATE
    assert decision.accepted
    assert "1h 15m" in decision.note


def test_factory_rejects_excessive_delay():
    strategy = CheckInStrategyFactory().for_delay(121)
    decision = strategy.decide(delay_minutes=121)

    assert isinstance(strategy, ExcessiveDelayStrategy)
    assert decision.status == AttendanceStatus.ABSENT
    assert not decision.accepted


def test_factory_thresholds_are_configurable():
    factory = CheckInStrategyFactory(grace_minutes=0, absent_after_minutes=30)

    assert isinstance(factory.for_delay(1), LateStrategy)
    assert isinstance(factory.for_delay(31), ExcessiveDelayStrategy)
