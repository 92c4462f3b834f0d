"""Tests for mDNS/Zeroconf Chromecast discovery."""

from unittest.mock import MagicMock, patch

import pytest
from zeroconf import DNSQuestionType, IPVersion

from plexcast.core.discovery import (
    CAST_SERVICE_TYPE,
    DISCOVERY_TIMEOUT,
    RESOLVE_TIMEOUT_MS,
    CastServiceListener,
    ReceiverDiscovery,
    async_discover_receivers,
    discover_receivers,
    receiver_from_info,
)
from plexcast.errors import DiscoveryError
from plexcast.models.receiver import Receiver


def _service_info(
    friendly_name: str | None,
    v4: list[str] | None = None,
    v6: list[str] | None = None,
    port: int = 8009,
    server: str = "abc123.local.",
) -> MagicMock:
    """Return a mock ServiceInfo for a cast device."""
    info = MagicMock()
    addresses = {IPVersion.V4Only: v4 or [], IPVersion.V6Only: v6 or []}
    info.parsed_addresses.side_effect = lambda version=IPVersion.All: addresses[version]
    info.properties = {b"fn": friendly_name.encode()} if friendly_name else {}
    info.port = port
    info.server = server
    return info


def _zeroconf_with(*infos: MagicMock) -> MagicMock:
    zc = MagicMock()
    zc.get_service_info.side_effect = list(infos)
    return zc


class TestReceiverFromInfo:
    """Tests for receiver_from_info."""

    def test_full_info(self) -> None:
        """Test all fields are taken from the service info."""
        info = _service_info("Living Room", v4=["1.2.3.4"], v6=["fe80::1"])
        receiver = receiver_from_info(f"Chromecast-abc.{CAST_SERVICE_TYPE}", info)
        assert receiver == Receiver(
            name="Living Room",
            host="abc123.local",
            address_v4="1.2.3.4",
            address_v6="fe80::1",
            port=8009,
            service_name=f"Chromecast-abc.{CAST_SERVICE_TYPE}",
        )

    def test_name_falls_back_to_instance(self) -> None:
        """Test the instance name is used without an fn property."""
        info = _service_info(None, v4=["1.2.3.4"])
        receiver = receiver_from_info(f"Chromecast-abc.{CAST_SERVICE_TYPE}", info)
        assert receiver.name == "Chromecast-abc"

    def test_missing_port_defaults(self) -> None:
        """Test the cast port is used when none is advertised."""
        info = _service_info("Kitchen", v4=["1.2.3.5"], port=0)
        assert receiver_from_info("x", info).port == 8009


class TestCastServiceListener:
    """Tests for CastServiceListener."""

    def test_initialization(self) -> None:
        """Test listener starts empty."""
        assert CastServiceListener().receivers == []

    def test_add_service(self) -> None:
        """Test a resolved service becomes a receiver."""
        on_found = MagicMock()
        listener = CastServiceListener(on_found=on_found)
        zc = _zeroconf_with(_service_info("Living Room", v4=["1.2.3.4"]))

        listener.add_service(zc, CAST_SERVICE_TYPE, "a")

        assert [r.name for r in listener.receivers] == ["Living Room"]
        on_found.assert_called_once_with(listener.receivers[0])
        zc.get_service_info.assert_called_once_with(
            CAST_SERVICE_TYPE, "a", timeout=RESOLVE_TIMEOUT_MS
        )

    def test_add_service_with_no_info(self) -> None:
        """Test unresolvable services are ignored."""
        listener = CastServiceListener()
        listener.add_service(_zeroconf_with(None), CAST_SERVICE_TYPE, "a")
        assert listener.receivers == []

    def test_add_service_without_address(self) -> None:
        """Test services with no address are ignored."""
        listener = CastServiceListener()
        zc = _zeroconf_with(_service_info("Ghost", server=""))
        listener.add_service(zc, CAST_SERVICE_TYPE, "a")
        assert listener.receivers == []

    def test_duplicate_names_first_seen_wins(self) -> None:
        """Test repeated announcements for a name keep the first receiver."""
        on_found = MagicMock()
        listener = CastServiceListener(on_found=on_found)
        zc = _zeroconf_with(
            _service_info("Living Room", v4=["1.2.3.4"]),
            _service_info("Kitchen", v4=["1.2.3.5"]),
            _service_info("Living Room", v4=["9.9.9.9"]),
            _service_info("Living Room", v4=["8.8.8.8"]),
        )

        listener.add_service(zc, CAST_SERVICE_TYPE, "a")
        listener.add_service(zc, CAST_SERVICE_TYPE, "b")
        listener.update_service(zc, CAST_SERVICE_TYPE, "a")
        listener.add_service(zc, CAST_SERVICE_TYPE, "c")

        receivers = listener.receivers
        assert [r.name for r in receivers] == ["Living Room", "Kitchen"]
        assert receivers[0].address_v4 == "1.2.3.4"
        assert on_found.call_count == 2

    def test_remove_service_keeps_receiver(self) -> None:
        """Test receivers stay in the result once seen."""
        listener = CastServiceListener()
        zc = _zeroconf_with(_service_info("Kitchen", v4=["1.2.3.5"]))
        listener.add_service(zc, CAST_SERVICE_TYPE, "a")

        listener.remove_service(zc, CAST_SERVICE_TYPE, "a")

        assert [r.name for r in listener.receivers] == ["Kitchen"]


class TestReceiverDiscovery:
    """Tests for ReceiverDiscovery class."""

    def test_initialization(self) -> None:
        """Test discovery initialization."""
        discovery = ReceiverDiscovery()
        assert discovery._zeroconf is None
        assert discovery._browser is None
        assert discovery.receivers == []

    @patch("plexcast.core.discovery.Zeroconf")
    @patch("plexcast.core.discovery.ServiceBrowser")
    def test_start_browses_multicast_only(
        self, mock_browser_cls: MagicMock, mock_zc_cls: MagicMock
    ) -> None:
        """Test start browses the cast service with multicast questions."""
        discovery = ReceiverDiscovery()
        discovery.start()

        mock_zc_cls.assert_called_once()
        args, kwargs = mock_browser_cls.call_args
        assert args[1] == CAST_SERVICE_TYPE
        assert kwargs["question_type"] == DNSQuestionType.QM

        discovery.stop()

    @patch("plexcast.core.discovery.Zeroconf")
    @patch("plexcast.core.discovery.ServiceBrowser")
    def test_start_idempotent(self, mock_browser_cls: MagicMock, mock_zc_cls: MagicMock) -> None:
        """Test start does not create a second browser."""
        discovery = ReceiverDiscovery()
        discovery.start()
        discovery.start()

        assert mock_zc_cls.call_count == 1

        discovery.stop()

    @patch("plexcast.core.discovery.Zeroconf")
    @patch("plexcast.core.discovery.ServiceBrowser")
    def test_stop_cleans_up(self, mock_browser_cls: MagicMock, mock_zc_cls: MagicMock) -> None:
        """Test stop cancels the browser and closes zeroconf."""
        discovery = ReceiverDiscovery()
        discovery.start()
        discovery.stop()

        mock_browser_cls.return_value.cancel.assert_called_once()
        mock_zc_cls.return_value.close.assert_called_once()
        assert discovery._zeroconf is None
        assert discovery._listener is None

    @patch("plexcast.core.discovery.Zeroconf", side_effect=OSError("no multicast"))
    def test_start_failure_raises_discovery_error(self, mock_zc_cls: MagicMock) -> None:
        """Test browser start failures raise DiscoveryError."""
        discovery = ReceiverDiscovery()
        with pytest.raises(DiscoveryError, match="no multicast"):
            discovery.start()
        assert discovery._zeroconf is None

    @patch("plexcast.core.discovery.Zeroconf")
    @patch("plexcast.core.discovery.ServiceBrowser")
    def test_discover_all_collects_for_duration(
        self, mock_browser_cls: MagicMock, mock_zc_cls: MagicMock
    ) -> None:
        """Test discover_all returns everything announced during the browse."""
        infos = [
            _service_info("Living Room", v4=["1.2.3.4"]),
            _service_info("Kitchen", v4=["1.2.3.5"]),
            _service_info("Living Room", v4=["1.2.3.4"]),
            _service_info("Living Room", v4=["1.2.3.4"]),
        ]
        mock_zc_cls.return_value.get_service_info.side_effect = infos

        def fake_browser(zc: MagicMock, type_: str, listener: CastServiceListener, **_: object):
            for name in ("a", "b", "a", "a"):
                listener.add_service(zc, type_, name)
            return MagicMock()

        mock_browser_cls.side_effect = fake_browser

        with patch("plexcast.core.discovery.threading.Event") as mock_event:
            receivers = discover_receivers(15.0)

        mock_event.return_value.wait.assert_called_once_with(timeout=15.0)
        assert [r.display_address for r in receivers] == ["1.2.3.4:8009", "1.2.3.5:8009"]
        assert [r.name for r in receivers] == ["Living Room", "Kitchen"]
        mock_zc_cls.return_value.close.assert_called_once()

    @patch("plexcast.core.discovery.Zeroconf")
    @patch("plexcast.core.discovery.ServiceBrowser")
    def test_discover_all_nothing_found(
        self, mock_browser_cls: MagicMock, mock_zc_cls: MagicMock
    ) -> None:
        """Test zero results is not an error."""
        with patch("plexcast.core.discovery.threading.Event"):
            assert ReceiverDiscovery.discover_all(timeout=0.1) == []

    @pytest.mark.asyncio
    async def test_async_discover_receivers(self) -> None:
        """Test the async wrapper runs discovery with the given duration."""
        found = [Receiver(name="Kitchen", address_v4="1.2.3.5")]
        with patch(
            "plexcast.core.discovery.discover_receivers", return_value=found
        ) as mock_discover:
            assert await async_discover_receivers(2.0) == found
        mock_discover.assert_called_once_with(2.0)


class TestConstants:
    """Tests for module constants."""

    def test_service_type(self) -> None:
        """Test the cast service type."""
        assert CAST_SERVICE_TYPE == "_googlecast._tcp.local."

    def test_default_duration(self) -> None:
        """Test the default browse duration."""
        assert DISCOVERY_TIMEOUT == 15.0

    def test_resolve_timeout_bounds_stop(self) -> None:
        """Test a pending resolve delays stopping by at most a second."""
        assert RESOLVE_TIMEOUT_MS == 1000
