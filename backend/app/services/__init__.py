# Services package init
"""
OpsLedger Backend — Services Layer
====================================

What:  Business logic between routes (HTTP) and the database.
How:   Each resource has a stateless service with a module-level singleton
       (`employee_service = EmployeeService()`). Services take the request's
       AsyncSession, call `flush()` but never `commit()`; the session
       dependency commits once the route returns.

Service Inventory:
    - reporting:          Pure utilization / portfolio / expense aggregation
    - pagination:         Page/take slicing and page_info
    - security:           bcrypt hashing and JWT issue/verify
    - auth_service:       Register, login, refresh, password reset
    - user_service:       Account listing and self/admin updates
    - employee_service:   Employees and the utilization report
    - project_service:    Projects, assignments and the portfolio report
    - expense_category_service / expense_service:  Monthly bookkeeping
    - invoice_service:    Invoices
    - file_service:       Profile image validation and storage
    - email_service:      Password reset emails (SMTP with retries)
"""
