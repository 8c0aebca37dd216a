from datetime import date, time

import pytest

from medibook.errors import ValidationError
from medibook.utils.datetime_utils import normalize_day, parse_date, parse_time
from medibook.utils.validators import clean_text, parse_id


@pytest.mark.parametrize('value, expected', [
    ('2024-03-04', date(2024, 3, 4)),
    (' 2024-03-04 ', date(2024, 3, 4)),
    ('2024-03-04T09:30:00', date(2024, 3, 4)),
    ('2024-03-04 09:30', date(2024, 3, 4)),
    (date(2024, 3, 4), date(2024, 3, 4)),
    (None, None),
    ('', None),
])
def test_parse_date(value, expected):
    assert parse_date(value) == expected


@pytest.mark.parametrize('value', ['2024-03-04junk', '2024-03-04Tjunk', '04/03/2024', '2024-13-01', 20240304])
def test_parse_date_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_date(value)


def test_parse_time():
    assert parse_time('09:30') == time(9, 30)
    assert parse_time('09:30:15') == time(9, 30, 15)
    with pytest.raises(ValidationError):
        parse_time('9am')


def test_normalize_day():
    assert normalize_day(' friday ') == 'Friday'
    with pytest.raises(ValidationError):
        normalize_day('Fri')


def test_parse_id():
    assert parse_id('12') == 12
    assert parse_id(7) == 7
    assert parse_id(None) is None
    for bad in ('abc', '1.5', 0, True, [1]):
        with pytest.raises(ValidationError):
            parse_id(bad)


def test_clean_text():
    assert clean_text('  Main Hospital ', 'location') == 'Main Hospital'
    assert clean_text('   ', 'location') is None
    with pytest.raises(ValidationError):
        clean_text('   ', 'location', required=True)
    with pytest.raises(ValidationError):
        clean_text(5, 'location')
