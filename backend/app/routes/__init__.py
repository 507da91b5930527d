# Routes package init
"""
OpsLedger Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:                /api/auth/*              (register, login, tokens, reset)
    - users.py:               /api/users               (accounts)
    - employees.py:           /api/employees           (+ /info utilization report)
    - projects.py:            /api/projects            (+ /info portfolio report)
    - expense_categories.py:  /api/expense-categories
    - expenses.py:            /api/expenses            (+ /info variance report)
    - invoices.py:            /api/invoices
    - files.py:               /api/files/{path}        (stored images)
    - health.py:              /health

Routes stay thin: read the request, call a service, shape the response.
"""
