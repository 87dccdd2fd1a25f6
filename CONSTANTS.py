## IAM RELATED
ROTATION_TAG = 'key_rotation'
ROTATION_TAG_ALLOW_VALUE = 'false'
EMAIL_TAG_PREFIX = 'email'

DEFAULT_PERIOD = 90
PAGE_SIZE = 1000


## SES
SES_REGION = 'eu-west-1'
SOURCE_ADDRESS = 'no-reply@digital.homeoffice.gov.uk'
CHARSET = 'UTF-8'
SUBJECT = 'Reminder: you have old AWS keys'

NOTIFY_TEMPLATE = ('Hi,\n'
                   'AWS access key id $key_id belonging to user $user was created over $period days ago.\n'
                   'You should consider rotating it. '
                   'Please refer to docs.acp.homeoffice.gov.uk/how-to/security/aws-keys for further guidance.\n'
                   'Thanks,\n'
                   'ACP Support Team')


## BOTOCORE
CALL_TIMEOUT = 10
MAX_ATTEMPTS = 3
