# -*- coding: utf-8 -*-
"""
Bluetooth unlock api frames

Frame specific data layout (the frame type byte comes first):

    unlock request   [0x2C][step][data]
    unlock response  [0xAC][step][data]   step 0x01..0x04
                     [0xAC][error]        any other value is an SRP error
"""
from enum import Enum
from srp_globals import BLE_UNLOCK, BLE_UNLOCK_RESPONSE


class SrpStep(Enum):
    STEP_1 = (0x01, "Client presents A value")
    STEP_2 = (0x02, "Server presents B and salt")
    STEP_3 = (0x03, "Client presents M1 session key validation value")
    STEP_4 = (0x04, "Server presents M2 session key validation value and two 12-byte nonces")

    def __init__(self, code, description):
        self.code = code
        self.description = description

    @classmethod
    def get(cls, code):
        for step in cls:
            if step.code == code:
                return step
        return None


class SrpError(Enum):
    UNABLE_OFFER_B = (0x80, "Unable to offer B (cryptographic error with content, usually due to A mod N == 0)")
    INCORRECT_LENGTH = (0x81, "Incorrect payload length")
    BAD_PROOF = (0x82, "Bad proof of key")
    RESOURCE_ALLOCATION = (0x83, "Resource allocation error")
    NOT_CORRECT_SEQUENCE = (0x84, "Request contained a step not in the correct sequence")
    UNKNOWN = (0xFF, "Unknown error")

    def __init__(self, code, description):
        self.code = code
        self.description = description

    @classmethod
    def get(cls, code):
        for error in cls:
            if error.code == code:
                return error
        return cls.UNKNOWN


def _check_payload(payload, frame_type, name):
    if payload is None:
        raise ValueError("{0} packet payload cannot be None.".format(name))
    if len(payload) < 2:
        raise ValueError("Incomplete {0} packet.".format(name))
    if payload[0] != frame_type:
        raise ValueError("Payload is not a {0} packet.".format(name))


class UnlockPacket(object):
    """request sent by the client for steps 1 and 3"""
    frame_type = BLE_UNLOCK

    def __init__(self, srp_step, data):
        if srp_step is None:
            raise ValueError("SRP step cannot be None.")
        if data is None:
            raise ValueError("Data cannot be None.")
        self.srp_step = srp_step
        self.data = bytes(data)

    @staticmethod
    def create_packet(payload):
        _check_payload(payload, BLE_UNLOCK, "Bluetooth Unlock")
        step = SrpStep.get(payload[1])
        if step is None:
            raise ValueError("Unknown SRP step {0:#04x}.".format(payload[1]))
        return UnlockPacket(step, payload[2:])

    def get_frame_data(self):
        return bytes([self.frame_type, self.srp_step.code]) + self.data

    def __str__(self):
        return "Bluetooth Unlock: {0} ({1}) {2}".format(
            self.srp_step.name, self.srp_step.description, self.data.hex())


class UnlockResponsePacket(object):
    """
    response sent by the device for steps 2 and 4

    exactly one of srp_step and srp_error is set
    """
    frame_type = BLE_UNLOCK_RESPONSE

    def __init__(self, srp_step=None, data=b"", srp_error=None):
        if (srp_step is None) == (srp_error is None):
            raise ValueError("Either an SRP step or an SRP error is required.")
        self.srp_step = srp_step
        self.srp_error = srp_error
        self.data = bytes(data) if srp_step is not None else b""

    @staticmethod
    def create_packet(payload):
        _check_payload(payload, BLE_UNLOCK_RESPONSE, "Bluetooth Unlock Response")
        step = SrpStep.get(payload[1])
        # if the step is unknown the packet contains an error
        if step is None:
            return UnlockResponsePacket(srp_error=SrpError.get(payload[1]))
        return UnlockResponsePacket(step, payload[2:])

    def is_error(self):
        return self.srp_error is not None

    def get_frame_data(self):
        if self.is_error():
            return bytes([self.frame_type, self.srp_error.code])
        return bytes([self.frame_type, self.srp_step.code]) + self.data

    def __str__(self):
        if self.is_error():
            return "Bluetooth Unlock Response: error {0:#04x} ({1})".format(
                self.srp_error.code, self.srp_error.description)
        return "Bluetooth Unlock Response: {0} ({1}) {2}".format(
            self.srp_step.name, self.srp_step.description, self.data.hex())
