"""Link collector backed by ``iw dev <iface> link``.

The ``iw`` tool ships with every mainstream Linux distribution and reads the
current association through nl80211 without requiring root.
"""

import asyncio
import logging
import re

from wifiradar.collectors.base import CollectorError, LinkCollector, NotAssociatedError
from wifiradar.collectors.clock import Clock
from wifiradar.models.base import LinkInfo, Sample

logger = logging.getLogger(__name__)

IW_BINARY = "iw"

_CONNECTED_RE = re.compile(r"^Connected to ([0-9a-fA-F:]{17})")
_SSID_RE = re.compile(r"^\s*SSID: (.*)$", re.MULTILINE)
_FREQ_RE = re.compile(r"^\s*freq: ([\d.]+)", re.MULTILINE)
_SIGNAL_RE = re.compile(r"^\s*signal: (-?[\d.]+) dBm", re.MULTILINE)
_RX_RATE_RE = re.compile(r"^\s*rx bitrate: ([\d.]+) MBit/s", re.MULTILINE)
_TX_RATE_RE = re.compile(r"^\s*tx bitrate: ([\d.]+) MBit/s", re.MULTILINE)


def _float_match(pattern: re.Pattern[str], text: str) -> float | None:
    match = pattern.search(text)
    return float(match.group(1)) if match else None


def parse_iw_link(output: str) -> LinkInfo:
    """Parse the text printed by ``iw dev <iface> link``.

    Args:
        output: Command stdout

    Returns:
        LinkInfo; ``connected`` is False for "Not connected." output
    """
    text = output.strip()
    if not text or text.startswith("Not connected"):
        return LinkInfo(connected=False)

    connected = _CONNECTED_RE.match(text)
    ssid = _SSID_RE.search(text)

    return LinkInfo(
        connected=connected is not None,
        bssid=connected.group(1).lower() if connected else None,
        ssid=ssid.group(1).strip() if ssid else None,
        frequency_mhz=_float_match(_FREQ_RE, text),
        signal_dbm=_float_match(_SIGNAL_RE, text),
        rx_bitrate_mbps=_float_match(_RX_RATE_RE, text),
        tx_bitrate_mbps=_float_match(_TX_RATE_RE, text),
    )


class IwLinkCollector(LinkCollector):
    """Sample signal strength for one interface using ``iw``.

    Produces Samples with ``signal_quality`` in dBm. Raises
    NotAssociatedError while the interface is not associated and
    CollectorError when ``iw`` fails (for example, unknown device).
    """

    def __init__(
        self,
        name: str,
        clock: Clock | None = None,
        binary: str = IW_BINARY,
        timeout: float | None = None,
    ) -> None:
        super().__init__(name, clock)
        self.binary = binary
        if timeout is not None:
            self.timeout = timeout

    async def read_link(self) -> str:
        """Run ``iw dev <iface> link`` and return its stdout.

        Raises:
            CollectorError: If the command exits with a non-zero status
            FileNotFoundError: If the iw binary is missing
        """
        process = await asyncio.create_subprocess_exec(
            self.binary,
            "dev",
            self.name,
            "link",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            # The scheduler gave up on us; kill and reap the child.
            if process.returncode is None:
                process.kill()
                await asyncio.shield(process.wait())
            raise

        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or f"exit status {process.returncode}"
            raise CollectorError(f"iw dev {self.name} link: {message}")
        return stdout.decode(errors="replace")

    async def collect(self) -> Sample:
        output = await self.read_link()
        link = parse_iw_link(output)

        if not link.connected:
            raise NotAssociatedError(f"{self.name} is not connected")
        if link.signal_dbm is None:
            raise CollectorError(f"No signal level reported for {self.name}")
        logger.debug(
            "%s: %.0f dBm on %s (%s, %s MHz)",
            self.name,
            link.signal_dbm,
            link.ssid,
            link.bssid,
            link.frequency_mhz,
        )

        return Sample(
            interface=self.name,
            timestamp=self.clock.now(),
            signal_quality=link.signal_dbm,
            connected=True,
        )
