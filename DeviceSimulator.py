# -*- coding: utf-8 -*-
import logging
import os
import queue
import threading
from srp_crypt import SRP_Verifier
from srp_globals import LENGTH_EPHEMERAL, LENGTH_NONCE, LENGTH_SESSION_PROOF
from unlock_packet import SrpError, SrpStep, UnlockPacket, UnlockResponsePacket

logger = logging.getLogger(__name__)


class DeviceSimulator:
    """
    Local device answering bluetooth unlock requests in memory

    Requests are queued by send_packet() and processed by a worker thread,
    which delivers the responses to the registered packet listeners the same
    way a device reader thread does.
    """

    def __init__(self, credentials):
        """
        credentials : DeviceCredentials holding the salt and verifier of the
                      bluetooth password
        """
        self.credentials = credentials
        self.listeners = []
        self.listeners_lock = threading.Lock()
        self.incoming_queue = None
        self.incoming_thread = None
        self.verifier = None
        self.session_key = None
        self.tx_nonce = None
        self.rx_nonce = None

    def __str__(self):
        return "DeviceSimulator"

    def open(self):
        """
        start the worker thread
        """
        if self.is_open():
            return
        self.incoming_queue = queue.Queue()
        self.incoming_thread = threading.Thread(target=self.handle_incoming,
                                                name="simulator thread",
                                                daemon=True)
        self.incoming_thread.start()

    def close(self):
        if not self.is_open():
            return
        self.incoming_queue.put(None)
        self.incoming_thread.join()
        self.incoming_thread = None

    def is_open(self):
        return self.incoming_thread is not None and self.incoming_thread.is_alive()

    def add_packet_listener(self, listener):
        with self.listeners_lock:
            if listener not in self.listeners:
                self.listeners.append(listener)

    def remove_packet_listener(self, listener):
        with self.listeners_lock:
            if listener in self.listeners:
                self.listeners.remove(listener)

    def listener_count(self):
        with self.listeners_lock:
            return len(self.listeners)

    def send_packet(self, packet):
        """
        queue a request, the answer is delivered to the listeners later
        """
        if not self.is_open():
            raise OSError("The simulated device is not open")
        self.incoming_queue.put(packet.get_frame_data())

    def deliver(self, packet):
        """
        send a packet to every listener as if it had been read from the wire
        """
        with self.listeners_lock:
            listeners = list(self.listeners)
        for listener in listeners:
            try:
                listener(packet)
            except Exception:
                logger.exception("Error in packet listener")

    def respond(self, srp_step=None, data=b"", srp_error=None):
        response = UnlockResponsePacket(srp_step, data, srp_error)
        self.deliver(UnlockResponsePacket.create_packet(response.get_frame_data()))

    def handle_unlock_init(self, A):
        """
        step 1: answer with the salt and B
        """
        self.verifier = None
        if len(A) != LENGTH_EPHEMERAL:
            self.respond(srp_error=SrpError.INCORRECT_LENGTH)
            return
        verifier = SRP_Verifier(self.credentials.salt, self.credentials.verifier, A)
        if not verifier.valid_client():
            self.respond(srp_error=SrpError.UNABLE_OFFER_B)
            return
        salt, B = verifier.get_challenge()
        self.verifier = verifier
        self.respond(SrpStep.STEP_2, salt + B)

    def handle_unlock_verification(self, M):
        """
        step 3: check M1 and answer with M2 and the session nonces
        """
        verifier, self.verifier = self.verifier, None
        if verifier is None:
            self.respond(srp_error=SrpError.NOT_CORRECT_SEQUENCE)
            return
        if len(M) != LENGTH_SESSION_PROOF:
            self.respond(srp_error=SrpError.INCORRECT_LENGTH)
            return
        HAMK = verifier.verify_session(M)
        if HAMK is None:
            self.respond(srp_error=SrpError.BAD_PROOF)
            return
        self.session_key = verifier.session_key
        self.tx_nonce = os.urandom(LENGTH_NONCE)
        self.rx_nonce = os.urandom(LENGTH_NONCE)
        self.respond(SrpStep.STEP_4, HAMK + self.tx_nonce + self.rx_nonce)

    def handle_incoming(self):
        """
        ***BLOCKING***
        wait for requests in self.incoming_queue and dispatch them until
        close() queues None

        this is meant to be used in a dedicated thread
        """
        while True:
            data = self.incoming_queue.get()
            if data is None:
                break
            try:
                packet = UnlockPacket.create_packet(data)
            except ValueError as e:
                logger.warning("Discarding request: %s", e)
                continue
            logger.debug("Simulator received %s", packet)
            if packet.srp_step == SrpStep.STEP_1:
                self.handle_unlock_init(packet.data)
            elif packet.srp_step == SrpStep.STEP_3:
                self.handle_unlock_verification(packet.data)
            else:
                self.respond(srp_error=SrpError.NOT_CORRECT_SEQUENCE)
