import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from string import Template

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

import CONSTANTS
from settings import ConfigurationError, load_settings
from tag_policy import resolve_policy

logger = logging.getLogger()
logger.setLevel(logging.INFO)

AWS_ERRORS = (ClientError, BotoCoreError)


class DirectoryError(Exception):
    """IAM users could not be enumerated, the run cannot continue."""


class IdentityQueryError(Exception):
    """A lookup for a single user failed, only that user is skipped."""


@dataclass
class RunSummary:
    users: int = 0
    stale: int = 0
    suppressed: int = 0
    no_recipients: int = 0
    notified: int = 0
    failed: int = 0


def get_clients(settings):
    logger.info('[INIT] Creating IAM and SES clients ...')
    cfg = BotoConfig(connect_timeout=settings.call_timeout,
                     read_timeout=settings.call_timeout,
                     retries={'max_attempts': CONSTANTS.MAX_ATTEMPTS, 'mode': 'standard'})
    iam = boto3.client('iam', config=cfg)
    ses = boto3.client('ses', region_name=settings.ses_region, config=cfg)
    return iam, ses


def load_users(iam):
    logger.info('[INIT] Loading Users from AWS IAM ...')
    try:
        response = iam.list_users(MaxItems=CONSTANTS.PAGE_SIZE)
        while True:
            for user in response['Users']:
                yield user['UserName']

            if not response.get('IsTruncated'):
                break
            response = iam.list_users(MaxItems=CONSTANTS.PAGE_SIZE, Marker=response['Marker'])
    except AWS_ERRORS as e:
        raise DirectoryError('unable to list IAM users: ' + str(e)) from e


def list_keys(iam, user):
    try:
        return iam.list_access_keys(UserName=user)['AccessKeyMetadata']
    except AWS_ERRORS as e:
        raise IdentityQueryError('unable to list access keys for ' + user + ': ' + str(e)) from e


def get_tags(iam, user):
    try:
        return iam.list_user_tags(UserName=user, MaxItems=CONSTANTS.PAGE_SIZE)['Tags']
    except AWS_ERRORS as e:
        raise IdentityQueryError('unable to list tags for ' + user + ': ' + str(e)) from e


def utc_now():
    return datetime.now(timezone.utc)


def is_stale(key, period, now):
    return key['CreateDate'] < now - timedelta(days=period)


def find_stale_key(iam, user, period, now=None):
    """Return the first key older than ``period`` days, paired with ``period``.

    Keys are checked in the order IAM lists them and the scan stops at the
    first match, so the result is not necessarily the oldest key.
    """
    now = now or utc_now()
    for key in list_keys(iam, user):
        if is_stale(key, period, now):
            return key, period
    return None


def compose_message(key, period):
    body = Template(CONSTANTS.NOTIFY_TEMPLATE).safe_substitute(
                key_id=key['AccessKeyId'],
                user=key['UserName'],
                period=period)
    return CONSTANTS.SUBJECT, body


def notify(ses, key, recipients, period, sender):
    logger.info('[ALERT] Sending Reminder Notification Mail for ' + key['AccessKeyId'])
    subject, body = compose_message(key, period)
    try:
        ses.send_email(
                    Destination   =     { 'ToAddresses': list(recipients) },
                    Message       =     { 'Subject': {'Charset': CONSTANTS.CHARSET, 'Data': subject},
                                          'Body': {'Text': {'Charset': CONSTANTS.CHARSET, 'Data': body}}},
                    Source        =     sender)
    except AWS_ERRORS as e:
        logger.error('[ERROR] Unable to send reminder for ' + key['AccessKeyId'] + ': ' + str(e))
        return False
    return True


def process_user(iam, ses, settings, user, summary, now):
    stale = find_stale_key(iam, user, settings.period, now)
    if stale is None:
        logger.info('User Compliant: ' + user)
        return
    key, period = stale
    summary.stale += 1

    tags = get_tags(iam, user)
    policy = resolve_policy(user, tags,
                            prefix=settings.email_tag_prefix,
                            limit=settings.max_recipients)
    if policy.suppressed:
        summary.suppressed += 1
        return
    if not policy.recipients:
        summary.no_recipients += 1
        return

    if not notify(ses, key, policy.recipients, period, settings.sender):
        summary.failed += 1
        return
    summary.notified += 1
    for recipient in policy.recipients:
        logger.info('notified %s re: access key %s created for %s on %s',
                    recipient, key['AccessKeyId'], user, key['CreateDate'].isoformat())


def run_key_notifier(iam, ses, settings, now=None):
    now = now or utc_now()
    summary = RunSummary()
    # Enumerate everything up front so a listing failure leaves no partial run.
    users = list(load_users(iam))
    for user in users:
        summary.users += 1
        logger.info('Validating User : ' + user)
        try:
            process_user(iam, ses, settings, user, summary, now)
        except IdentityQueryError as e:
            summary.failed += 1
            logger.error('[SKIP] ' + str(e))
    logger.info('[SUMMARY] ' + json.dumps(asdict(summary)))
    return summary


def lambda_handler(event, context):
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error('[CONFIG] ' + str(e) + ' - no keys evaluated')
        return {'statusCode': 500, 'body': json.dumps('Configuration error')}

    try:
        iam, ses = get_clients(settings)
        summary = run_key_notifier(iam, ses, settings)
    except AWS_ERRORS as e:
        logger.error('[ERROR] Unable to connect to AWS: ' + str(e))
        return {'statusCode': 500, 'body': json.dumps('Connection error')}
    except DirectoryError as e:
        logger.error('[ERROR] ' + str(e))
        return {'statusCode': 500, 'body': json.dumps('Directory error')}

    return {
        'statusCode': 200,
        'body': json.dumps(asdict(summary))
    }


if __name__ == '__main__':
    logging.basicConfig()
    lambda_handler({}, None)
