# -*- coding: utf-8 -*-
import logging
import threading
from srp_globals import BLE_UNLOCK_RESPONSE

logger = logging.getLogger(__name__)


class UnlockResponseListener(object):
    """
    hands the unlock responses received by the device's reader thread over to
    the thread running the handshake

    the expected step and the received response are kept together under one
    condition, so a response is only accepted for the step being waited for
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._expected_step = None
        self._response = None

    @property
    def expected_step(self):
        with self._cond:
            return self._expected_step

    def reset(self):
        """
        forget the expected step and any stored response
        """
        with self._cond:
            self._expected_step = None
            self._response = None

    def expect(self, step):
        """
        empty the slot and start accepting responses for the given step

        the expected step can only move forward until reset() is called
        """
        with self._cond:
            if self._expected_step is not None and \
                    step.code <= self._expected_step.code:
                raise ValueError("Cannot go back from {0} to {1}".format(
                    self._expected_step.name, step.name))
            self._expected_step = step
            self._response = None

    def packet_received(self, packet):
        """
        callback registered as a packet listener in the device
        """
        if getattr(packet, "frame_type", None) != BLE_UNLOCK_RESPONSE:
            return
        with self._cond:
            if self._expected_step is None:
                return
            # error responses carry no step and are always accepted
            if packet.srp_step is not None and packet.srp_step != self._expected_step:
                logger.debug("Ignoring unlock response for %s, expecting %s",
                             packet.srp_step.name, self._expected_step.name)
                return
            if self._response is not None:
                logger.debug("Ignoring duplicated unlock response")
                return
            self._response = packet
            self._cond.notify()

    __call__ = packet_received

    def wait_response(self, timeout):
        """
        ***BLOCKING***
        wait at most timeout seconds for the response of the expected step

        returns the response, or None if nothing arrived in time
        """
        with self._cond:
            self._cond.wait_for(lambda: self._response is not None, timeout)
            return self._response
