import logging
import threading
from urllib.parse import urlparse

import requests

import config
from models import GateDecision, ProbeResult

logger = logging.getLogger(__name__)


def http_transport(url, timeout=None) -> ProbeResult:
    """Single GET against the probe URL. Only the status code is kept."""
    try:
        response = requests.get(url, timeout=timeout or config.probe_timeout)
    except requests.RequestException as e:
        return ProbeResult(error=f"{type(e).__name__}: {e}")
    response.close()
    return ProbeResult(status_code=response.status_code)


def is_valid_probe_url(url) -> bool:
    if not url or not isinstance(url, str) or any(c.isspace() for c in url):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def decision_for_probe(result: ProbeResult) -> GateDecision:
    if result.status_code == 404:
        return GateDecision.NORMAL
    return GateDecision.ALTERNATE


class LaunchGate:
    """Decides once per app session whether to show the games or the remote view.

    Args:
        signals_provider: zero-arg callable returning ``DeviceSignals``
        probe_url: URL probed when the device signals do not short-circuit
        transport: callable ``(url) -> ProbeResult``, defaults to ``http_transport``
    """

    def __init__(self, signals_provider, probe_url, transport=None):
        self.signals_provider = signals_provider
        self.probe_url = probe_url.strip() if isinstance(probe_url, str) else probe_url
        self.transport = transport or http_transport
        self._decision = None
        self._started = False
        self._lock = threading.Lock()
        self._resolved = threading.Event()
        self._subscribers = []

    @property
    def resolved(self) -> bool:
        return self._resolved.is_set()

    @property
    def decision(self):
        """The decision, or None while unresolved."""
        return self._decision

    def subscribe(self, callback):
        """Call ``callback(decision)`` once, now if already resolved."""
        with self._lock:
            if not self._resolved.is_set():
                self._subscribers.append(callback)
                return
        callback(self._decision)

    def start(self):
        """Run the evaluation in the background. Later calls do nothing."""
        with self._lock:
            if self._started:
                return
            self._started = True
        thread = threading.Thread(target=self._run, name="launch-gate", daemon=True)
        thread.start()

    def evaluate(self) -> GateDecision:
        """Run the evaluation inline and return the decision."""
        with self._lock:
            already_started = self._started
            self._started = True
        if already_started:
            self._resolved.wait()
            return self._decision
        self._run()
        return self._decision

    def wait(self, timeout=None):
        self._resolved.wait(timeout)
        return self._decision

    def _run(self):
        try:
            decision = self._decide()
        except Exception:
            logger.exception("Launch gate evaluation failed, using normal mode")
            decision = GateDecision.NORMAL
        self._resolve(decision)

    def _decide(self) -> GateDecision:
        signals = self.signals_provider()
        if signals.battery_level == 100 or signals.vpn_active:
            logger.info("Device signals short-circuit the probe")
            return GateDecision.NORMAL

        if not is_valid_probe_url(self.probe_url):
            logger.warning("Probe URL missing or malformed: %r", self.probe_url)
            return GateDecision.NORMAL

        try:
            result = self.transport(self.probe_url)
        except Exception as e:
            result = ProbeResult(error=f"{type(e).__name__}: {e}")
        if result.failed:
            logger.info("Probe failed: %s", result.error)
        else:
            logger.info("Probe answered %d", result.status_code)
        return decision_for_probe(result)

    def _resolve(self, decision):
        with self._lock:
            self._decision = decision
            self._resolved.set()
            subscribers, self._subscribers = self._subscribers, []
        logger.info("Launch gate resolved: %s", decision.value)
        for callback in subscribers:
            callback(decision)
