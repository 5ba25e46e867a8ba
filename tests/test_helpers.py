from datetime import date, datetime

import pytest

from utils.helpers import (
    allowed_file, format_date, generate_password_hash, paginate_params,
    pagination_payload, parse_semester, validate_institution_email, verify_password
)


@pytest.mark.parametrize('value, expected', [
    ('3', 3),
    ('3.0', 3),
    (8, 8),
    (' 1 ', 1),
    ('0', None),
    ('9', None),
    ('3.5', None),
    ('third', None),
    ('', None),
    (None, None),
])
def test_parse_semester(value, expected):
    assert parse_semester(value) == expected


def test_validate_institution_email():
    assert validate_institution_email('asha@inst.edu', 'inst.edu')
    assert validate_institution_email('Asha@INST.EDU', 'inst.edu')
    assert not validate_institution_email('asha@gmail.com', 'inst.edu')
    assert not validate_institution_email('asha@evilinst.edu', 'inst.edu')
    assert not validate_institution_email('not-an-email', 'inst.edu')


def test_password_hash_round_trip():
    stored = generate_password_hash('s3cret')
    assert verify_password('s3cret', stored)
    assert not verify_password('wrong', stored)
    assert not verify_password('s3cret', 'zz')
    assert generate_password_hash('s3cret') != stored


def test_allowed_file():
    assert allowed_file('poster.PNG', {'png', 'jpg'})
    assert not allowed_file('poster', {'png'})
    assert not allowed_file('roster.xls', {'xlsx', 'csv'})


def test_format_date():
    assert format_date(datetime(2024, 3, 5, 23, 59), '%d/%m/%Y') == '05/03/2024'
    assert format_date(date(2024, 12, 1), '%d/%m/%Y') == '01/12/2024'
    assert format_date(None) == ''


def test_paginate_params():
    assert paginate_params({}) == (1, 20, 0)
    assert paginate_params({'page': '3', 'per_page': '10'}) == (3, 10, 20)
    assert paginate_params({'page': 'x', 'per_page': '1000'}) == (1, 100, 0)


def test_pagination_payload():
    payload = pagination_payload(45, 2, 20)
    assert payload['pages'] == 3
    assert payload['has_prev'] is True
    assert payload['has_next'] is True
