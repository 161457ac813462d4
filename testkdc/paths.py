""" Default locations and well known values of the test KDC """

KDC_DATA_DIR = '/var/lib/kerberos/krb5kdc'
KDC_CONF = KDC_DATA_DIR + '/kdc.conf'
KADM5_ACL = KDC_DATA_DIR + '/kadm5.acl'
KRB5_CONF = '/etc/krb5.conf'

TESTKDC_CONF = '/etc/testkdc.yaml'

DEFAULT_REALM = 'EXAMPLE.COM'
DEFAULT_KDC_PORT = 88
DEFAULT_KADMIN_PORT = 749
DEFAULT_MASTER_PASSWORD = 'password'
DEFAULT_ENCTYPES = ['aes256-cts-hmac-sha1-96:normal']

PROC_NET = '/proc/net'
