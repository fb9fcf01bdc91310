class AuditEvents:
    # Accounts
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"
    PROFILE_UPDATED = "profile_updated"

    # Employees
    EMPLOYEE_CREATED = "employee_created"
    EMPLOYEE_UPDATED = "employee_updated"
    EMPLOYEE_DELETED = "employee_deleted"
    EMPLOYEE_OFFICE_UPDATED = "employee_office_updated"
    EMPLOYEE_SHIFT_UPDATED = "employee_shift_updated"

    # Attendance
    ATTENDANCE_CHECKED_IN = "attendance_checked_in"
    ATTENDANCE_CHECKED_OUT = "attendance_checked_out"
    ATTENDANCE_CHECK_IN_REJECTED = "attendance_check_in_rejected"
    ATTENDANCE_CHECK_OUT_REJECTED = "attendance_check_out_rejected"
    ATTENDANCE_HISTORY_VIEWED_ADMIN = "attendance_history_viewed_admin"
