# backend/lib/tariff_engine/errors.py


class TariffEngineError(Exception):
    """Base class for errors raised by the billing engine."""


class InvalidReadingError(TariffEngineError, ValueError):
    """A meter reading is missing, non-numeric or negative."""


class NegativeConsumptionError(InvalidReadingError):
    """The current reading is lower than the previous reading."""


class TariffConfigError(TariffEngineError, ValueError):
    """The tariff schedule configuration is invalid."""
