"""
BillSense AI Backend — API Routes Package
=========================================

What:  HTTP route tables. Each module exposes a static `router` that
       create_app() includes once.

Route Inventory:
    - auth.py:      POST /api/auth/register, POST /api/auth/login,
                    GET/PUT /api/auth/me
    - invoices.py:  POST/GET /api/invoices, GET/PUT/DELETE /api/invoices/{id}
    - ai.py:        POST /api/ai/generate-invoice, POST /api/ai/generate-reminder,
                    GET /api/ai/dashboard-summary
    - health.py:    GET /, GET /health

Design Principle:
    Routes are THIN: extract path/body, call a service, return its result.
    Protected handlers declare `Depends(protect)`; public ones do not.
"""
