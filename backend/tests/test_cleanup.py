"""Expired-session sweeps."""
from spm_attendance.models.attendance_session import AttendanceSession
from spm_attendance.services.cleanup_service import SessionCleanupService
from spm_attendance.services.directory import LecturerIdentity
from spm_attendance.storage import MemoryRecordStore


def issue(services, lecturer, minutes):
    return services.session_manager.generate_session(
        LecturerIdentity(id=lecturer.id, name=lecturer.name), 'BIT364', 'Web Development', minutes
    ).session.session_code


def test_run_cleanup_removes_only_expired(services, lecturer, other_lecturer, clock):
    issue(services, lecturer, 10)
    keep = issue(services, other_lecturer, 60)

    clock.advance(minutes=10)
    assert services.cleanup.get_expired_count() == 1
    assert services.cleanup.get_active_count() == 1

    assert services.cleanup.run_cleanup() == 1
    assert [s.session_code for s in AttendanceSession.query.all()] == [keep]
    assert services.cleanup.run_cleanup() == 0


def test_cleanup_for_lecturer(services, lecturer, other_lecturer, clock):
    issue(services, lecturer, 10)
    issue(services, other_lecturer, 10)

    clock.advance(minutes=15)
    deleted = services.cleanup.cleanup_for_lecturer(LecturerIdentity(id=lecturer.id, name=lecturer.name))

    assert deleted == 1
    assert [s.lecturer for s in AttendanceSession.query.all()] == ['Dr. Asante']


def test_cleanup_in_fallback_mode(services, connectivity, lecturer, clock):
    connectivity.set(False)
    issue(services, lecturer, 10)

    clock.advance(minutes=10)
    assert services.cleanup.run_cleanup() == 1
    assert len(services.sessions.fallback) == 0


def test_scheduler_start_and_stop(app, clock):
    cleanup = SessionCleanupService(MemoryRecordStore(), clock=clock)
    assert cleanup.is_running is False

    cleanup.start(app, interval_minutes=5)
    try:
        assert cleanup.is_running is True
        assert cleanup.scheduler.get_job(SessionCleanupService.JOB_ID) is not None
        # Second start is a no-op
        cleanup.start(app, interval_minutes=5)
    finally:
        cleanup.stop()

    assert cleanup.is_running is False


def test_cli_cleanup_command(app, services, lecturer, clock):
    issue(services, lecturer, 10)
    clock.advance(minutes=10)

    result = app.test_cli_runner().invoke(args=['cleanup-sessions'])

    assert 'Removed 1 expired session(s)' in result.output
    assert AttendanceSession.query.count() == 0
