# -*- coding: utf-8 -*-
import argparse
import logging
import sys
import threading
import weakref
from enum import Enum
import srp_globals as SG
from srp_crypt import SRP_User
from srp_errors import (AuthenticationFailed, AuthenticationInProgressError,
                        BadProofError, NotOpenError, ResponseTimeoutError,
                        ServerProtocolError, TransportError)
from unlock_listener import UnlockResponseListener
from unlock_packet import SrpStep, UnlockPacket

logger = logging.getLogger(__name__)

# one handshake lock per device, shared by every BluetoothAuth using it
_device_locks = weakref.WeakKeyDictionary()
_device_locks_lock = threading.Lock()


def device_lock(device):
    """
    returns the lock that serializes the handshakes of a device
    """
    with _device_locks_lock:
        lock = _device_locks.get(device)
        if lock is None:
            lock = _device_locks[device] = threading.Lock()
        return lock


class AuthState(Enum):
    INIT = "init"
    AWAIT_CHALLENGE = "await challenge"
    CHALLENGE_COMPUTED = "challenge computed"
    AWAIT_FINAL_PROOF = "await final proof"
    COMPLETE = "complete"
    FAILED = "failed"


class BluetoothAuth:
    """
    Performs the bluetooth unlock of a local device

    The unlock is an SRP-6a exchange (RFC 5054 1024-bit group, SHA-256) with
    the identity fixed to "apiservice". It takes two round trips:

        step 1 ->  A
        step 2 <-  salt, B
        step 3 ->  M1
        step 4 <-  M2, TX nonce, RX nonce

    The device given must provide is_open(), send_packet(packet),
    add_packet_listener(listener) and remove_packet_listener(listener).
    The listener is called from the device's reader thread. Only one
    handshake runs per device at a time, so the device must be hashable and
    weak referenceable.
    """

    def __init__(self, device, password, timeout=SG.TIMEOUT_AUTH):
        """
        device : the local device to unlock
        password : the bluetooth password configured in the device
        timeout : optional argument to specify the seconds to wait for each
                  response of the device
        """
        if password is None:
            raise ValueError("Password cannot be None.")
        self.device = device
        self.password = password
        self.timeout = timeout
        self.state = AuthState.INIT
        self.last_error = None
        self._listener = UnlockResponseListener()
        self._running = device_lock(device)
        # (session key, tx nonce, rx nonce), only set on success
        self._session = None

    def authenticate(self):
        """
        ***BLOCKING***
        run a new handshake with the device

        raises a subclass of AuthenticationFailed if the unlock fails. nothing
        is retried, call it again to start over with a new SRP session
        """
        if not self._running.acquire(blocking=False):
            raise AuthenticationInProgressError()
        try:
            self._session = None
            self.last_error = None
            self._set_state(AuthState.INIT)
            if not self.device.is_open():
                raise NotOpenError()
            self._listener.reset()
            self.device.add_packet_listener(self._listener)
            try:
                self._session = self._handshake()
            finally:
                self.device.remove_packet_listener(self._listener)
                self._listener.reset()
            self._set_state(AuthState.COMPLETE)
        except Exception as e:
            self.last_error = e
            self._set_state(AuthState.FAILED)
            logger.debug("%s: %s", self.device, e)
            raise
        finally:
            self._running.release()

    def _set_state(self, state):
        logger.debug("%s: %s -> %s", self.device, self.state.name, state.name)
        self.state = state

    def _handshake(self):
        user = SRP_User(self.password)

        # Step 1.
        A = user.start_authentication()
        logger.debug("%s: SRP step 1 - A = %s", self.device, A.hex())
        self._set_state(AuthState.AWAIT_CHALLENGE)
        response = self._exchange(SrpStep.STEP_1, A, SrpStep.STEP_2)

        # Step 2.
        data = self._check_length(
            response, SG.LENGTH_SALT + SG.LENGTH_EPHEMERAL)
        salt = data[:SG.LENGTH_SALT]
        B = data[SG.LENGTH_SALT:SG.LENGTH_SALT + SG.LENGTH_EPHEMERAL]
        logger.debug("%s: SRP step 2 - s = %s - B = %s",
                     self.device, salt.hex(), B.hex())

        # Step 3.
        M1 = user.process_challenge(salt, B)
        self._set_state(AuthState.CHALLENGE_COMPUTED)
        logger.debug("%s: SRP step 3 - M1 = %s", self.device, M1.hex())
        self._set_state(AuthState.AWAIT_FINAL_PROOF)
        response = self._exchange(SrpStep.STEP_3, M1, SrpStep.STEP_4)

        # Step 4.
        data = self._check_length(
            response, SG.LENGTH_SESSION_PROOF + 2 * SG.LENGTH_NONCE)
        index = SG.LENGTH_SESSION_PROOF
        M2 = data[:index]
        tx_nonce = data[index:index + SG.LENGTH_NONCE]
        index += SG.LENGTH_NONCE
        rx_nonce = data[index:index + SG.LENGTH_NONCE]
        logger.debug("%s: SRP step 4 - M2 = %s - TX nonce = %s - RX nonce = %s",
                     self.device, M2.hex(), tx_nonce.hex(), rx_nonce.hex())

        user.verify_session(M2)
        if not user.authenticated():
            raise BadProofError()
        return (user.get_session_key(), tx_nonce, rx_nonce)

    def _exchange(self, step, data, expected_step):
        """
        send an unlock request and wait for the response of expected_step
        """
        self._listener.expect(expected_step)
        try:
            self.device.send_packet(UnlockPacket(step, data))
        except Exception as e:
            raise TransportError(str(e)) from e
        response = self._listener.wait_response(self.timeout)
        if response is None:
            raise ResponseTimeoutError()
        if response.is_error():
            raise ServerProtocolError(response.srp_error)
        return response

    def _check_length(self, response, length):
        if len(response.data) < length:
            raise ServerProtocolError(reason="Invalid {0} length: {1} bytes".format(
                response.srp_step.name, len(response.data)))
        return response.data

    def get_session_key(self):
        return self._session[0] if self._session else None

    def get_tx_nonce(self):
        return self._session[1] if self._session else None

    def get_rx_nonce(self):
        return self._session[2] if self._session else None


def parse_args_and_start(argv=None):
    """
    read the CL arguments and unlock a simulated device with them
    """
    from DeviceSimulator import DeviceSimulator
    from device_credentials import DeviceCredentials

    parser = argparse.ArgumentParser(
        description="Bluetooth unlock against a simulated device")
    parser.add_argument('-p', '--password', help='the password to unlock with', required=True)
    parser.add_argument('-d', '--device-password', help='the password configured in the device')
    parser.add_argument('-c', '--credentials', help='json file with the device salt and verifier')
    parser.add_argument('-t', '--timeout', type=float, default=SG.TIMEOUT_AUTH,
                        help='seconds to wait for each response')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if args.credentials:
        credentials = DeviceCredentials.load(args.credentials)
    else:
        credentials = DeviceCredentials.generate(args.device_password or args.password)

    device = DeviceSimulator(credentials)
    device.open()
    try:
        auth = BluetoothAuth(device, args.password, timeout=args.timeout)
        auth.authenticate()
    except AuthenticationFailed as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        device.close()

    print("Session key: " + auth.get_session_key().hex())
    print("TX nonce: " + auth.get_tx_nonce().hex())
    print("RX nonce: " + auth.get_rx_nonce().hex())
    return 0


# main guard
if __name__ == "__main__":
    sys.exit(parse_args_and_start())
