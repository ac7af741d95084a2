"""Record stores: shared predicate semantics and per-call backend switching."""
from datetime import timedelta

import pytest

from spm_attendance.models.attendance_log import AttendanceLog
from spm_attendance.models.attendance_session import AttendanceSession
from spm_attendance.storage import (
    Criteria, DuplicateRecordError, MemoryRecordStore, SqlRecordStore, StaticConnectivity,
    SwitchingRecordStore, active_sessions, expired_sessions, owned_by
)
from tests.conftest import T0


def make_session(code, lecturer='Dr. Mensah', lecturer_id=None, minutes=30, issued=T0, course='BIT364'):
    return AttendanceSession(
        session_code=code,
        course_code=course,
        course_name='Web Development',
        lecturer=lecturer,
        lecturer_id=lecturer_id,
        issued_at=issued,
        expires_at=issued + timedelta(minutes=minutes)
    )


def seed(store, lecturer_id=None):
    store.create(make_session('AAAAAA-AAAAAA', lecturer_id=lecturer_id, minutes=10))
    store.create(make_session('BBBBBB-BBBBBB', lecturer_id=lecturer_id, minutes=60))
    store.create(make_session('CCCCCC-CCCCCC', lecturer='Dr. Asante', minutes=60, course='BIT200'))
    # Legacy row: display name only
    store.create(make_session('DDDDDD-DDDDDD', lecturer='Dr. Mensah', minutes=5,
                              issued=T0 - timedelta(hours=1)))


@pytest.fixture(params=['memory', 'sql'])
def store(request, app):
    if request.param == 'memory':
        return MemoryRecordStore()
    return SqlRecordStore(AttendanceSession)


def codes(records):
    return sorted(record.session_code for record in records)


def test_owned_by_matches_id_or_legacy_name(store, lecturer):
    seed(store, lecturer_id=lecturer.id)

    found = store.find_many(owned_by(lecturer.id, 'Dr. Mensah'))
    assert codes(found) == ['AAAAAA-AAAAAA', 'BBBBBB-BBBBBB', 'DDDDDD-DDDDDD']

    # By id alone the legacy row is invisible
    assert codes(store.find_many(owned_by(lecturer.id))) == ['AAAAAA-AAAAAA', 'BBBBBB-BBBBBB']


def test_owned_by_name_skips_rows_stamped_with_another_id(store, lecturer, other_lecturer):
    seed(store, lecturer_id=lecturer.id)
    # Colleague's session carrying Dr. Mensah's display name
    store.create(make_session('EEEEEE-EEEEEE', lecturer='Dr. Mensah', lecturer_id=other_lecturer.id))

    assert codes(store.find_many(owned_by(lecturer.id, 'Dr. Mensah'))) == [
        'AAAAAA-AAAAAA', 'BBBBBB-BBBBBB', 'DDDDDD-DDDDDD'
    ]
    assert codes(store.find_many(owned_by(other_lecturer.id, 'Dr. Asante'))) == [
        'CCCCCC-CCCCCC', 'EEEEEE-EEEEEE'
    ]
    assert store.count(active_sessions(T0, lecturer.id, 'Dr. Mensah')) == 2


def test_owned_by_nobody_matches_nothing(store):
    seed(store)
    assert store.find_many(owned_by(None, None)) == []
    assert store.count(owned_by()) == 0


def test_expired_and_active_split_at_expiry(store):
    seed(store)
    now = T0 + timedelta(minutes=10)

    # The 10-minute session expires exactly now
    assert codes(store.find_many(expired_sessions(now, None, 'Dr. Mensah'))) == [
        'AAAAAA-AAAAAA', 'DDDDDD-DDDDDD'
    ]
    assert codes(store.find_many(active_sessions(now, None, 'Dr. Mensah'))) == ['BBBBBB-BBBBBB']
    assert store.count(active_sessions(now)) == 2


def test_sort_limit_and_offset(store):
    seed(store)

    ordered = store.find_many(Criteria(), sort=[('expires_at', 'desc'), ('session_code', 'asc')])
    assert [r.session_code for r in ordered] == [
        'BBBBBB-BBBBBB', 'CCCCCC-CCCCCC', 'AAAAAA-AAAAAA', 'DDDDDD-DDDDDD'
    ]

    page = store.find_many(Criteria(), sort=[('session_code', 'asc')], limit=2, offset=1)
    assert [r.session_code for r in page] == ['BBBBBB-BBBBBB', 'CCCCCC-CCCCCC']


def test_where_operators(store):
    seed(store)

    assert codes(store.find_many(Criteria().where('course_code', 'ne', 'BIT364'))) == ['CCCCCC-CCCCCC']
    assert codes(store.find_many(
        Criteria().where('session_code', 'in', ['AAAAAA-AAAAAA', 'CCCCCC-CCCCCC'])
    )) == ['AAAAAA-AAAAAA', 'CCCCCC-CCCCCC']
    assert store.count(Criteria().where('issued_at', 'lt', T0)) == 1
    assert store.count(Criteria(lecturer_id=None)) == 4


def test_delete_many_returns_count(store):
    seed(store)

    assert store.delete_many(Criteria(lecturer='Dr. Asante')) == 1
    assert store.delete_many(Criteria(lecturer='Dr. Asante')) == 0
    assert store.count(Criteria()) == 3


def test_unsupported_operator():
    with pytest.raises(ValueError):
        Criteria().where('course_code', 'like', 'BIT%')


def test_memory_store_assigns_ids():
    store = MemoryRecordStore()
    first = store.create(make_session('AAAAAA-AAAAAA'))
    second = store.create(make_session('BBBBBB-BBBBBB'))

    assert (first.id, second.id) == (1, 2)
    assert first.created_at is not None
    assert len(store) == 2


def test_sql_store_raises_duplicate_on_unique_key(app):
    store = SqlRecordStore(AttendanceLog)
    entry = dict(student_id='STU-001', session_code='AAAAAA-AAAAAA', timestamp=T0)
    store.create(AttendanceLog(**entry))

    with pytest.raises(DuplicateRecordError):
        store.create(AttendanceLog(**entry))

    assert store.count(Criteria(student_id='STU-001')) == 1


def test_switching_store_routes_each_call(app):
    connectivity = StaticConnectivity(True)
    persistent, fallback = SqlRecordStore(AttendanceSession), MemoryRecordStore()
    store = SwitchingRecordStore(persistent, fallback, connectivity)

    store.create(make_session('AAAAAA-AAAAAA'))
    connectivity.set(False)
    store.create(make_session('BBBBBB-BBBBBB'))

    assert codes(store.find_many(Criteria())) == ['BBBBBB-BBBBBB']
    connectivity.set(True)
    assert codes(store.find_many(Criteria())) == ['AAAAAA-AAAAAA']
    assert len(fallback) == 1


def test_count_distinct(store):
    seed(store)

    assert store.count_distinct('lecturer', Criteria()) == 2
    assert store.count_distinct('course_code', Criteria(lecturer='Dr. Mensah')) == 1
    assert store.count_distinct('lecturer_id', Criteria()) == 0
