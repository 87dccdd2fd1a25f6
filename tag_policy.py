"""Translate an IAM user's tags into a notification policy.

Tags are a free-form key/value bag. This is the only place that reads the
reserved keys, everything downstream works with a :class:`Policy`.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import CONSTANTS

logger = logging.getLogger()


@dataclass(frozen=True)
class Policy:
    user: str
    suppressed: bool = False
    recipients: Tuple[str, ...] = ()

    @property
    def should_notify(self):
        return not self.suppressed and bool(self.recipients)


def is_suppressed(tags):
    # Any value other than the literal 'false' opts the user out, typos included.
    for tag in (tags or []):
        if tag['Key'] == CONSTANTS.ROTATION_TAG:
            return tag['Value'] != CONSTANTS.ROTATION_TAG_ALLOW_VALUE
    return False


def get_recipients(tags, prefix=CONSTANTS.EMAIL_TAG_PREFIX, limit: Optional[int] = None):
    recipients = []
    for tag in (tags or []):
        if limit is not None and len(recipients) >= limit:
            break
        if not tag['Key'].startswith(prefix):
            continue
        value = (tag.get('Value') or '').strip()
        if value:
            recipients.append(value)
    return recipients


def resolve_policy(user, tags, prefix=CONSTANTS.EMAIL_TAG_PREFIX, limit=None) -> Policy:
    if is_suppressed(tags):
        logger.info('[POLICY] user ignored: ' + user)
        return Policy(user=user, suppressed=True)

    recipients = get_recipients(tags, prefix=prefix, limit=limit)
    if not recipients:
        logger.info('[POLICY] no email found for user with expired key: ' + user)
    return Policy(user=user, recipients=tuple(recipients))
