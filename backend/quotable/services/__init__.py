"""
So Quotable Backend — Services Layer
=====================================

Business rules between the routes and the database. Each service is a
class with a module-level singleton; every method takes the request's
AsyncSession and flushes, leaving the commit to the session dependency.

    identity_service            sign-up/in (password, Google), sessions, JWTs
    auth_guard                  require_auth / owner-or-admin / admin
    email_verification_service  verification token lifecycle
    password_reset_service      reset token lifecycle, hourly request cap
    email_service               Resend delivery (logs only in test mode)
    person_service, quote_service, image_service
                                CRUD with ownership checks
    cloudinary_service          signed uploads + metadata rows
    transformations             quote-card URL builders
    admin_service               test-user cleanup, owner backfill, promotion
"""
