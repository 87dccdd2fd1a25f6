import logging
import os
from dataclasses import dataclass
from typing import Optional

import CONSTANTS

logger = logging.getLogger()


class ConfigurationError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    """Run configuration, read once from the environment and passed around explicitly."""

    period: int = CONSTANTS.DEFAULT_PERIOD
    sender: str = CONSTANTS.SOURCE_ADDRESS
    ses_region: str = CONSTANTS.SES_REGION
    email_tag_prefix: str = CONSTANTS.EMAIL_TAG_PREFIX
    max_recipients: Optional[int] = None
    call_timeout: int = CONSTANTS.CALL_TIMEOUT


def _positive_int(name, value):
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError('invalid value for ' + name + ': ' + repr(value))
    if number <= 0:
        raise ConfigurationError(name + ' must be a positive integer, got ' + repr(value))
    return number


def load_settings(environ=None):
    environ = os.environ if environ is None else environ

    period = environ.get('PERIOD')
    if period is None:
        logger.info('[CONFIG] no expiry period specified - defaulting to %d days', CONSTANTS.DEFAULT_PERIOD)
        period = CONSTANTS.DEFAULT_PERIOD

    sender = environ.get('SENDER')
    if not sender:
        logger.info('[CONFIG] no sender email address specified - defaulting to ' + CONSTANTS.SOURCE_ADDRESS)
        sender = CONSTANTS.SOURCE_ADDRESS

    max_recipients = environ.get('MAX_RECIPIENTS')
    if max_recipients:
        max_recipients = _positive_int('MAX_RECIPIENTS', max_recipients)
    else:
        max_recipients = None

    return Settings(
        period=_positive_int('PERIOD', period),
        sender=sender,
        ses_region=environ.get('SES_REGION') or CONSTANTS.SES_REGION,
        email_tag_prefix=environ.get('EMAIL_TAG_PREFIX') or CONSTANTS.EMAIL_TAG_PREFIX,
        max_recipients=max_recipients,
        call_timeout=_positive_int('AWS_CALL_TIMEOUT', environ.get('AWS_CALL_TIMEOUT', CONSTANTS.CALL_TIMEOUT)),
    )
