from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import ClientError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def days_ago(days):
    return NOW - timedelta(days=days)


def make_key(user, key_id, age_days, status='Active'):
    return {'UserName': user, 'AccessKeyId': key_id, 'Status': status, 'CreateDate': days_ago(age_days)}


def client_error(operation, code='ServiceFailure'):
    return ClientError({'Error': {'Code': code, 'Message': 'boom'}}, operation)


class FakeIAM:
    """Just enough of the boto3 IAM client for the notifier."""

    def __init__(self, page_size=None):
        self.users = []
        self.keys = {}
        self.tags = {}
        self.failing = set()
        self.page_size = page_size
        self.calls = []

    def add_user(self, name, keys=(), tags=None):
        self.users.append(name)
        self.keys[name] = list(keys)
        self.tags[name] = [{'Key': k, 'Value': v} for k, v in (tags or {}).items()]

    def _check(self, operation, user=None):
        self.calls.append((operation, user))
        if operation in self.failing or (operation, user) in self.failing:
            raise client_error(operation)

    def list_users(self, MaxItems=None, Marker=None):
        self._check('ListUsers')
        start = int(Marker or 0)
        size = self.page_size or len(self.users)
        page = self.users[start:start + size]
        response = {'Users': [{'UserName': name} for name in page], 'IsTruncated': False}
        if start + size < len(self.users):
            response.update(IsTruncated=True, Marker=str(start + size))
        return response

    def list_access_keys(self, UserName):
        self._check('ListAccessKeys', UserName)
        return {'AccessKeyMetadata': self.keys[UserName]}

    def list_user_tags(self, UserName, MaxItems=None):
        self._check('ListUserTags', UserName)
        return {'Tags': self.tags[UserName]}


class FakeSES:

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_email(self, Destination, Message, Source):
        if self.fail:
            raise client_error('SendEmail', code='MessageRejected')
        self.sent.append({'to': Destination['ToAddresses'],
                          'subject': Message['Subject']['Data'],
                          'body': Message['Body']['Text']['Data'],
                          'source': Source})
        return {'MessageId': 'msg-%d' % len(self.sent)}


@pytest.fixture
def iam():
    return FakeIAM()


@pytest.fixture
def ses():
    return FakeSES()
