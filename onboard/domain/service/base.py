"""Base service class for domain services."""


class Service:
    """Base class for onboarding domain services.

    A service holds behaviour spanning several aggregates (an invitation and
    the member it admits) or talking to an external source.
    """

    pass
