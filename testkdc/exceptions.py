"""
    Exceptions raised while provisioning and checking the test KDC
"""


class StandardException(Exception):
    """ Overrides Exception class """

    def __init__(self, msg=None, rval=1):
        if msg is None:
            msg = 'Error'
        self.msg = msg
        self.rval = rval
        super(StandardException, self).__init__(self.msg)

    def __str__(self):
        return "{} ({})".format(self.msg, self.rval)


class InvalidInput(StandardException):
    """
    Override StandardException used mainly when invalid input is passed
    """


class ConfigError(InvalidInput):
    """
    Raised when the KDC configuration file or environment is unusable
    """


class KdcException(StandardException):
    """
    Override StandardException, This exception is to be used for
    Kerberos server related Errors
    """


class CommandFailed(KdcException):
    """
    A command run on a host exited with a non-zero status
    """

    def __init__(self, args, returncode, stderr_text=''):
        self.args_list = list(args)
        self.stderr_text = stderr_text
        msg = "Command '{}' failed".format(' '.join(self.args_list))
        if stderr_text:
            msg = "{}: {}".format(msg, stderr_text.strip())
        super(CommandFailed, self).__init__(msg, returncode)


class KadminError(KdcException):
    """
    kadmin.local reported an error for a query
    """


class SmokeCheckFailed(StandardException):
    """
    One or more smoke checks against a running KDC failed
    """
