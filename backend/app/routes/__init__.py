# Routes package init
"""
Parcel Server Backend: API Routes Package
==========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - parcels.py:   GET    /parcels                 (list, optional ?email=)
                    GET    /parcels/{id}            (fetch one)
                    POST   /parcels                 (create)
                    DELETE /parcels/{id}            (delete)
    - tracking.py:  POST   /tracking                (append tracking log)
    - payments.py:  GET    /payments                (history, optional ?email=)
                    POST   /payments                (record payment, mark parcel paid)
                    POST   /create-payment-intent   (Stripe charge intent)
    - health.py:    GET    /                        (liveness text)
                    GET    /health                  (dependency report)

Routes stay THIN: extract request data, call a service, pick the status
code. Error responses come from the global handlers in main.py.
"""
