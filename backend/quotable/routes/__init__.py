"""
So Quotable Backend — API Routes
=================================

Thin HTTP handlers: parse the request, resolve the caller, call one service,
return its result. Access rules and validation live in the services.

    auth.py                /api/auth/*, /api/users/me
    email_verification.py  /api/email-verification/*
    password_reset.py      /api/password-reset/*
    people.py              /api/people
    quotes.py              /api/quotes
    images.py              /api/images, /api/generated-images
    uploads.py             /api/uploads, /api/transformations/url
    admin.py               /api/admin/*
    health.py              /health
"""
