"""
Infrastructure Package
======================

Provides abstraction layers for external dependencies following the Dependency Inversion Principle.

Modules:
    - email: Email service abstraction (SMTP, mock)
    - payments: Payment provider abstraction (Paystack, mock)
    - couriers: Courier quoting, booking and tracking (Courier Guy, Fastway, rate tables)
    - events: Domain event bus (in-memory, Redis pub/sub)

This package enables:
    - Easy testing with mock implementations
    - Switching between providers without code changes
    - Loose coupling between business logic and infrastructure
"""
