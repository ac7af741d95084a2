"""Attendance services, built once per application."""
from dataclasses import dataclass

from flask import Flask, current_app

from spm_attendance.models.attendance_log import AttendanceLog
from spm_attendance.models.attendance_session import AttendanceSession
from spm_attendance.services.attendance_record_service import AttendanceRecordService
from spm_attendance.services.checkin_service import CheckInProcessor
from spm_attendance.services.cleanup_service import SessionCleanupService
from spm_attendance.services.code_service import Clock
from spm_attendance.services.directory import UserDirectory
from spm_attendance.services.notification_service import NotificationService
from spm_attendance.services.session_service import SessionLifecycleManager
from spm_attendance.storage import (
    Connectivity, DatabaseConnectivity, MemoryRecordStore, SqlRecordStore, SwitchingRecordStore
)

EXTENSION_KEY = 'attendance'


@dataclass
class AttendanceServices:
    connectivity: Connectivity
    clock: Clock
    sessions: SwitchingRecordStore
    logs: SwitchingRecordStore
    directory: UserDirectory
    session_manager: SessionLifecycleManager
    checkin: CheckInProcessor
    records: AttendanceRecordService
    cleanup: SessionCleanupService


def build_services(connectivity: Connectivity = None, clock: Clock = None,
                   directory=None) -> AttendanceServices:
    connectivity = connectivity or DatabaseConnectivity()
    clock = clock or Clock()
    directory = directory or UserDirectory()

    sessions = SwitchingRecordStore(SqlRecordStore(AttendanceSession), MemoryRecordStore(), connectivity)
    logs = SwitchingRecordStore(SqlRecordStore(AttendanceLog), MemoryRecordStore(), connectivity)

    session_manager = SessionLifecycleManager(
        sessions, clock=clock, hooks=[NotificationService.notify_session_created]
    )
    checkin = CheckInProcessor(
        sessions, logs, directory, clock=clock, hooks=[NotificationService.notify_attendance_scan]
    )

    return AttendanceServices(
        connectivity=connectivity,
        clock=clock,
        sessions=sessions,
        logs=logs,
        directory=directory,
        session_manager=session_manager,
        checkin=checkin,
        records=AttendanceRecordService(sessions, logs, session_manager, clock=clock),
        cleanup=SessionCleanupService(sessions, clock=clock)
    )


def init_attendance(app: Flask, connectivity: Connectivity = None, clock: Clock = None) -> AttendanceServices:
    services = build_services(connectivity=connectivity, clock=clock)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> AttendanceServices:
    return current_app.extensions[EXTENSION_KEY]
