# -*- coding: utf-8 -*-
from srp_globals import ERROR_AUTH_EXTENDED


class AuthenticationFailed(Exception):
    """
    raised when the bluetooth unlock could not be completed

    every failure of BluetoothAuth.authenticate() is one of the subclasses
    below; catch this class to handle all of them
    """
    REASON = "Authentication failed."

    def __init__(self, reason=None):
        self.reason = reason or self.REASON
        super(AuthenticationFailed, self).__init__(
            ERROR_AUTH_EXTENDED.format(self.reason))


class NotOpenError(AuthenticationFailed):
    REASON = "The connection interface is not open."


class ResponseTimeoutError(AuthenticationFailed):
    REASON = "Server response not received."


class ServerProtocolError(AuthenticationFailed):
    """the device answered with an SRP error code or a malformed response"""
    REASON = "Invalid server response."

    def __init__(self, error=None, reason=None):
        self.error = error
        if reason is None and error is not None:
            reason = error.description
        super(ServerProtocolError, self).__init__(reason)


class ChallengeError(AuthenticationFailed):
    REASON = "Could not process challenge."


class BadProofError(AuthenticationFailed):
    REASON = "Bad proof of key."


class TransportError(AuthenticationFailed):
    REASON = "Could not send the unlock request."


class AuthenticationInProgressError(AuthenticationFailed):
    REASON = "Another authentication is already in progress."
