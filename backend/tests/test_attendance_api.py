"""Attendance endpoints."""
import json

import pytest

from spm_attendance.models.attendance_log import AttendanceLog
from spm_attendance.models.attendance_session import AttendanceSession
from spm_attendance.models.notification import Notification


def body(response):
    return json.loads(response.data)


def generate(client, headers, **overrides):
    payload = {'courseCode': 'BIT364', 'courseName': 'Web Development'}
    payload.update(overrides)
    return client.post('/api/attendance/generate-session', json=payload, headers=headers)


@pytest.fixture
def lecturer_headers(lecturer, auth_headers):
    return auth_headers(lecturer)


@pytest.fixture
def student_headers(student, auth_headers):
    return auth_headers(student)


@pytest.fixture
def session_code(client, lecturer_headers):
    return body(generate(client, lecturer_headers))['data']['session']['sessionCode']


def test_health_check(client):
    response = client.get('/api/attendance/health')
    assert response.status_code == 200
    assert body(response)['message'] == 'Attendance service is running'


def test_generate_session(client, lecturer_headers, lecturer):
    response = generate(client, lecturer_headers)

    assert response.status_code == 201
    data = body(response)['data']
    assert data['session']['courseCode'] == 'BIT364'
    assert data['session']['lecturer'] == 'Dr. Mensah'
    assert data['session']['lecturerId'] == lecturer.id
    assert data['session']['remainingSeconds'] == 30 * 60
    assert data['session']['isExpired'] is False
    assert data['qrCode']['dataUrl'].startswith('data:image/png;base64,')
    assert data['qrCode']['payload']['sessionCode'] == data['session']['sessionCode']
    assert response.headers.get('X-Request-ID')
    assert AttendanceSession.query.count() == 1


def test_generate_validation(client, lecturer_headers):
    response = generate(client, lecturer_headers, courseName='')
    assert response.status_code == 400
    assert body(response)['message'] == 'courseName is required'

    response = generate(client, lecturer_headers, durationMinutes=241)
    assert response.status_code == 400

    response = generate(client, lecturer_headers, durationMinutes='abc')
    assert response.status_code == 400


def test_generate_requires_lecturer_role(client, student_headers):
    response = generate(client, student_headers)
    assert response.status_code == 403
    assert body(response)['error'] is True


def test_generate_conflict_reports_active_session(client, lecturer_headers, clock):
    first = body(generate(client, lecturer_headers, durationMinutes=10))['data']['session']

    clock.advance(minutes=9)
    response = generate(client, lecturer_headers)

    assert response.status_code == 400
    data = body(response)
    assert data['error'] is True
    assert data['activeSession'] == {
        'sessionCode': first['sessionCode'],
        'remainingSeconds': 60,
        'expiresAt': first['expiresAt']
    }

    clock.advance(minutes=1)
    assert generate(client, lecturer_headers).status_code == 201
    assert AttendanceSession.query.count() == 1


def test_active_session(client, lecturer_headers):
    response = client.get('/api/attendance/active-session', headers=lecturer_headers)
    assert body(response)['data'] == {'hasActiveSession': False}

    code = body(generate(client, lecturer_headers))['data']['session']['sessionCode']
    data = body(client.get('/api/attendance/active-session', headers=lecturer_headers))['data']

    assert data['hasActiveSession'] is True
    assert data['session']['sessionCode'] == code


def test_check_in_with_qr_payload(client, lecturer_headers, student_headers):
    generated = body(generate(client, lecturer_headers))['data']
    qr_text = json.dumps(generated['qrCode']['payload'])

    response = client.post('/api/attendance/check-in', json={'qrCode': qr_text}, headers=student_headers)

    assert response.status_code == 200
    data = body(response)
    assert data['message'] == 'Attendance marked'
    assert data['data']['alreadyCheckedIn'] is False
    assert data['data']['log']['studentId'] == 'STU-001'
    assert data['data']['log']['checkInMethod'] == 'QR_SCAN'
    assert data['data']['session']['courseName'] == 'Web Development'
    assert AttendanceLog.query.one().qr_raw == qr_text


def test_check_in_twice(client, session_code, student_headers):
    client.post('/api/attendance/check-in', json={'sessionCode': session_code}, headers=student_headers)
    response = client.post('/api/attendance/check-in', json={'sessionCode': session_code}, headers=student_headers)

    assert response.status_code == 200
    data = body(response)
    assert data['message'] == 'Already checked in'
    assert data['data']['alreadyCheckedIn'] is True
    assert AttendanceLog.query.count() == 1


def test_token_student_id_beats_body(client, session_code, student_headers):
    response = client.post('/api/attendance/check-in',
                           json={'sessionCode': session_code, 'studentId': 'STU-999'},
                           headers=student_headers)

    assert body(response)['data']['log']['studentId'] == 'STU-001'


def test_admin_checks_in_on_behalf_of_student(client, session_code, admin, auth_headers):
    response = client.post('/api/attendance/mark',
                           json={'sessionCode': session_code.lower(), 'studentId': 'EXT-042'},
                           headers=auth_headers(admin))

    assert response.status_code == 200
    log = body(response)['data']['log']
    assert log['studentId'] == 'EXT-042'
    assert log['checkInMethod'] == 'MANUAL_CODE'


def test_check_in_errors(client, session_code, student_headers, clock):
    response = client.post('/api/attendance/check-in', json={}, headers=student_headers)
    assert response.status_code == 400

    response = client.post('/api/attendance/check-in', json={'sessionCode': 'NOPE00-NOPE00'},
                           headers=student_headers)
    assert response.status_code == 404
    assert body(response)['sessionCode'] == 'NOPE00-NOPE00'

    clock.advance(minutes=30)
    response = client.post('/api/attendance/mark', json={'sessionCode': session_code},
                           headers=student_headers)
    assert response.status_code == 400
    data = body(response)
    assert data['sessionCode'] == session_code
    assert data['expiredAt'] == '2025-03-03T09:30:00.000Z'


def test_check_in_rejects_non_string_qr_code(client, session_code, student_headers):
    response = client.post('/api/attendance/check-in', json={'qrCode': {'sessionCode': session_code}},
                           headers=student_headers)

    assert response.status_code == 400
    assert body(response)['message'] == 'qrCode must be a string'
    assert AttendanceLog.query.count() == 0


def test_check_in_requires_student_role(client, session_code, lecturer_headers):
    response = client.post('/api/attendance/check-in', json={'sessionCode': session_code},
                           headers=lecturer_headers)
    assert response.status_code == 403


def test_validate_session_is_public(client, session_code, clock):
    response = client.get(f'/api/attendance/session/{session_code}')
    data = body(response)['data']
    assert data['valid'] is True
    assert data['session']['remainingSeconds'] == 1800

    clock.advance(minutes=30)
    data = body(client.get(f'/api/attendance/session/{session_code}'))['data']
    assert data['valid'] is False
    assert data['session']['isExpired'] is True

    assert client.get('/api/attendance/session/NOPE00-NOPE00').status_code == 404


def test_lecturer_dashboard(client, session_code, lecturer, lecturer_headers, student_headers):
    client.post('/api/attendance/check-in', json={'sessionCode': session_code}, headers=student_headers)

    response = client.get(f'/api/attendance/lecturer/{lecturer.id}', headers=lecturer_headers)

    assert response.status_code == 200
    data = body(response)['data']
    assert data['lecturer'] == {'id': lecturer.id, 'name': 'Dr. Mensah'}
    assert data['currentSession']['sessionCode'] == session_code
    assert [r['studentId'] for r in data['records']] == ['STU-001']
    assert data['stats'] == {
        'totalRecords': 1,
        'uniqueStudents': 1,
        'totalSessions': 1,
        'activeSessions': 1
    }


def test_dashboard_of_another_lecturer_is_forbidden(client, lecturer_headers, other_lecturer):
    response = client.get(f'/api/attendance/lecturer/{other_lecturer.id}', headers=lecturer_headers)
    assert response.status_code == 403


def test_admin_sees_any_dashboard(client, session_code, lecturer, admin, auth_headers):
    response = client.get(f'/api/attendance/lecturer/{lecturer.id}', headers=auth_headers(admin))

    assert response.status_code == 200
    assert body(response)['data']['currentSession']['sessionCode'] == session_code

    assert client.get('/api/attendance/lecturer/9999', headers=auth_headers(admin)).status_code == 404


def test_reset_requires_confirmation(client, session_code, lecturer_headers):
    response = client.delete('/api/attendance/reset', json={}, headers=lecturer_headers)
    assert response.status_code == 400
    assert AttendanceSession.query.count() == 1


def test_reset(client, session_code, lecturer_headers, student_headers):
    client.post('/api/attendance/check-in', json={'sessionCode': session_code}, headers=student_headers)

    response = client.delete('/api/attendance/reset', json={'confirmReset': True}, headers=lecturer_headers)

    assert response.status_code == 200
    assert body(response)['data']['deleted'] == {'sessions': 1, 'logs': 1}
    assert AttendanceSession.query.count() == 0
    assert AttendanceLog.query.count() == 0


def test_reset_leaves_other_lecturers_alone(client, lecturer_headers, other_lecturer, auth_headers):
    generate(client, lecturer_headers)
    generate(client, auth_headers(other_lecturer))

    client.delete('/api/attendance/reset', json={'confirmReset': True}, headers=lecturer_headers)

    assert [s.lecturer for s in AttendanceSession.query.all()] == ['Dr. Asante']


def test_borrowed_display_name_does_not_claim_session(client, lecturer, lecturer_headers,
                                                     other_lecturer, auth_headers):
    # Dr. Mensah labels a session with a colleague's name
    response = generate(client, lecturer_headers, lecturer='Dr. Asante')
    assert response.status_code == 201
    assert body(response)['data']['session']['lecturerId'] == lecturer.id

    asante = auth_headers(other_lecturer)
    assert generate(client, asante).status_code == 201

    response = client.delete('/api/attendance/reset', json={'confirmReset': True}, headers=asante)
    assert body(response)['data']['deleted'] == {'sessions': 1, 'logs': 0}
    assert AttendanceSession.query.filter_by(lecturer_id=lecturer.id).count() == 1
    assert AttendanceSession.query.filter_by(lecturer_id=other_lecturer.id).count() == 0


def test_reset_by_lecturer_id(client, session_code, lecturer, lecturer_headers, admin,
                              other_lecturer, auth_headers):
    response = client.delete(f'/api/attendance/reset/{lecturer.id}', json={'confirmReset': True},
                             headers=auth_headers(other_lecturer))
    assert response.status_code == 403

    response = client.delete(f'/api/attendance/reset/{lecturer.id}', json={'confirmReset': True},
                             headers=auth_headers(admin))
    assert response.status_code == 200
    assert AttendanceSession.query.count() == 0


def test_logs_are_scoped_to_lecturer(client, session_code, lecturer_headers, student_headers,
                                     other_lecturer, auth_headers):
    client.post('/api/attendance/check-in', json={'sessionCode': session_code}, headers=student_headers)

    data = body(client.get('/api/attendance/logs', headers=lecturer_headers))['data']
    assert data['total'] == 1
    assert data['logs'][0]['sessionCode'] == session_code

    data = body(client.get('/api/attendance/logs', headers=auth_headers(other_lecturer)))['data']
    assert data['total'] == 0


def test_export_csv(client, session_code, lecturer_headers, student_headers):
    client.post('/api/attendance/check-in', json={'sessionCode': session_code}, headers=student_headers)

    response = client.get('/api/attendance/export', headers=lecturer_headers)

    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    lines = response.data.decode('utf-8').strip().splitlines()
    assert lines[0] == 'timestamp,studentId,studentName,centre,courseCode,courseName,lecturer,sessionCode'
    assert 'STU-001' in lines[1]


def test_alias_routes(client, lecturer, lecturer_headers):
    response = client.post('/api/attendance-sessions/',
                           json={'courseCode': 'BIT364', 'courseName': 'Web Development'},
                           headers=lecturer_headers)
    assert response.status_code == 201
    code = body(response)['data']['session']['sessionCode']

    data = body(client.get('/api/attendance-sessions/', headers=lecturer_headers))['data']
    assert data['lecturer']['id'] == lecturer.id
    assert data['currentSession']['sessionCode'] == code

    response = client.delete('/api/attendance-sessions/reset', json={'confirmReset': True},
                             headers=lecturer_headers)
    assert body(response)['data']['deleted']['sessions'] == 1


def test_notifications_follow_session_and_check_in(client, session_code, lecturer, student_headers):
    client.post('/api/attendance/check-in', json={'sessionCode': session_code}, headers=student_headers)

    types = sorted(n.type for n in Notification.query.filter_by(recipient_id=lecturer.id))
    assert types == ['attendance_scan', 'attendance_session_created']


def test_fallback_storage_mode(client, connectivity, lecturer_headers, student_headers, services):
    connectivity.set(False)

    code = body(generate(client, lecturer_headers))['data']['session']['sessionCode']
    response = client.post('/api/attendance/check-in', json={'sessionCode': code}, headers=student_headers)

    assert response.status_code == 200
    assert AttendanceSession.query.count() == 0
    assert len(services.sessions.fallback) == 1
    assert len(services.logs.fallback) == 1

    # Sessions issued during the outage are not visible once it ends
    connectivity.set(True)
    assert client.get(f'/api/attendance/session/{code}').status_code == 404
