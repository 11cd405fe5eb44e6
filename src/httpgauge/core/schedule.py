"""Schedules: cron expressions and English recurrence phrases.

Both forms resolve to a six-field cron expression (seconds first) evaluated
with croniter in UTC.
"""

import re
from datetime import datetime, timezone

from croniter import croniter

from httpgauge.core.errors import ScheduleError

_WEEKDAYS = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}
_WEEKDAY_ABBREVIATIONS = {name[:3]: number for name, number in _WEEKDAYS.items()}

_INTERVAL = re.compile(r"every (?:(?P<count>\d+) )?(?P<unit>second|minute|hour)s?")
_CLOCK = re.compile(r"(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>am|pm)?")

_UNIT_LIMITS = {"second": 59, "minute": 59, "hour": 23}


class CronTrigger:
    """Trigger backed by a cron expression.

    Five-field expressions get an implicit ``0`` seconds field.

    Raises:
        ScheduleError: The expression does not parse.
    """

    def __init__(self, expression: str) -> None:
        fields = expression.split()
        if len(fields) == 5:
            fields.insert(0, "0")
        if len(fields) != 6:
            raise ScheduleError(
                f"cron expression {expression!r} must have 5 or 6 fields"
            )
        self.expression = " ".join(fields)
        try:
            croniter(
                self.expression,
                datetime.now(timezone.utc),
                second_at_beginning=True,
            )
        except (ValueError, KeyError) as e:
            raise ScheduleError(f"invalid cron expression {expression!r}: {e}") from e

    def next_after(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        itr = croniter(self.expression, moment, second_at_beginning=True)
        return itr.get_next(datetime)

    def __repr__(self) -> str:
        return f"CronTrigger({self.expression!r})"


def _parse_clock(text: str) -> tuple[int, int]:
    """Parse "4pm", "4:30 pm", "16:30", "noon" or "midnight"."""
    if text == "noon":
        return 12, 0
    if text == "midnight":
        return 0, 0
    match = _CLOCK.fullmatch(text)
    if match is None:
        raise ScheduleError(f"unrecognised time of day: {text!r}")
    hour = int(match["hour"])
    minute = int(match["minute"] or 0)
    meridiem = match["meridiem"]
    if meridiem is not None:
        if not 1 <= hour <= 12:
            raise ScheduleError(f"hour out of range: {text!r}")
        hour = hour % 12 + (12 if meridiem == "pm" else 0)
    if hour > 23 or minute > 59:
        raise ScheduleError(f"time out of range: {text!r}")
    return hour, minute


def _parse_weekdays(words: list[str]) -> str:
    days: list[int] = []
    for word in words:
        if word in ("and", "on"):
            continue
        if word in ("weekday", "weekdays"):
            days.extend(range(1, 6))
            continue
        if word in ("weekend", "weekends"):
            days.extend((0, 6))
            continue
        singular = word[:-1] if word.endswith("s") and word[:-1] in _WEEKDAYS else word
        number = _WEEKDAYS.get(singular, _WEEKDAY_ABBREVIATIONS.get(singular))
        if number is None:
            raise ScheduleError(f"unrecognised day: {word!r}")
        days.append(number)
    if not days:
        raise ScheduleError("no days given")
    return ",".join(str(day) for day in sorted(set(days)))


def english_to_cron(phrase: str) -> str:
    """Translate an English recurrence phrase into a six-field cron expression.

    Supported phrases include "every 30 seconds", "every minute",
    "every 5 minutes", "hourly", "every 2 hours", "daily",
    "every day at 4:30 pm", "at 09:00", "midnight", "every monday and friday
    at noon", "every weekday at 9am", "weekly" and "monthly".

    Raises:
        ScheduleError: The phrase is not recognised.
    """
    text = " ".join(phrase.lower().replace(",", " ").split())
    if text.startswith("run "):
        text = text[4:]

    time_text: str | None = None
    if text.startswith("at "):
        head, time_text = "every day", text[3:]
    elif " at " in text:
        head, _, time_text = text.partition(" at ")
    else:
        head = text
    if head in ("midnight", "noon") and time_text is None:
        head, time_text = "every day", head

    interval = _INTERVAL.fullmatch(head)
    if interval is not None or head == "hourly":
        if time_text is not None:
            raise ScheduleError(f"interval schedules take no time of day: {phrase!r}")
        unit = interval["unit"] if interval is not None else "hour"
        count = interval["count"] if interval is not None else None
        step = "*"
        if count is not None:
            if not 1 <= int(count) <= _UNIT_LIMITS[unit]:
                raise ScheduleError(f"interval out of range: {phrase!r}")
            step = f"*/{int(count)}"
        return {
            "second": f"{step} * * * * *",
            "minute": f"0 {step} * * * *",
            "hour": f"0 0 {step} * * *",
        }[unit]

    hour, minute = _parse_clock(time_text) if time_text is not None else (0, 0)
    if head in ("every day", "each day", "everyday", "daily"):
        return f"0 {minute} {hour} * * *"
    if head in ("every week", "weekly"):
        return f"0 {minute} {hour} * * 0"
    if head in ("every month", "monthly"):
        return f"0 {minute} {hour} 1 * *"
    words = head.split()
    if words and words[0] in ("every", "on", "each"):
        return f"0 {minute} {hour} * * {_parse_weekdays(words[1:])}"
    raise ScheduleError(f"unrecognised schedule phrase: {phrase!r}")


def parse_schedule(text: str) -> CronTrigger:
    """Build a trigger from a cron expression or an English phrase.

    Raises:
        ScheduleError: The text is neither form.
    """
    text = text.strip()
    if not text:
        raise ScheduleError("empty schedule")
    try:
        return CronTrigger(text)
    except ScheduleError as cron_error:
        try:
            return CronTrigger(english_to_cron(text))
        except ScheduleError as phrase_error:
            raise ScheduleError(
                f"schedule {text!r} is not a cron expression ({cron_error}) "
                f"nor a known phrase ({phrase_error})"
            ) from phrase_error
