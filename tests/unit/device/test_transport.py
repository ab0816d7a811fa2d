"""Тесты USB-транспорта (tdlabel/device/transport.py)."""

from unittest import mock

import pytest
import usb.core

from tdlabel.device.catalog import VENDOR_ID
from tdlabel.device.selector import SelectionCriteria, select_device
from tdlabel.device.transport import (
    ENDPOINT_OUT,
    WRITE_TIMEOUT_MS,
    PyUsbBus,
    PyUsbHandle,
    claimed_interface,
    write_stream,
)
from tdlabel.exceptions import (
    DeviceError,
    DeviceNotFoundError,
    InterfaceClaimError,
    ShortWriteError,
    TransmissionError,
)


@pytest.fixture
def handle() -> mock.MagicMock:
    h = mock.MagicMock()
    h.product_id = 0x20B6
    h.bulk_write.side_effect = lambda endpoint, data, timeout_ms: len(data)
    return h


class TestClaimedInterface:
    def test_claims_and_sets_alt_setting(self, handle: mock.MagicMock) -> None:
        with claimed_interface(handle) as printer:
            assert printer is handle
            handle.claim_interface.assert_called_once_with(0)
            handle.set_interface_alt_setting.assert_called_once_with(0, 0)
        handle.release_interface.assert_called_once_with(0)
        handle.close.assert_called_once()

    def test_claim_failure_closes_handle(self, handle: mock.MagicMock) -> None:
        handle.claim_interface.side_effect = usb.core.USBError("Resource busy")
        with pytest.raises(InterfaceClaimError) as exc_info:
            with claimed_interface(handle):
                pytest.fail("body must not run")
        assert "Interface claim failed" in str(exc_info.value)
        handle.close.assert_called_once()
        handle.release_interface.assert_not_called()

    def test_alt_setting_failure_closes_handle(self, handle: mock.MagicMock) -> None:
        handle.set_interface_alt_setting.side_effect = OSError("pipe error")
        with pytest.raises(InterfaceClaimError):
            with claimed_interface(handle):
                pass
        handle.close.assert_called_once()

    def test_release_and_close_on_error_in_block(self, handle: mock.MagicMock) -> None:
        with pytest.raises(RuntimeError):
            with claimed_interface(handle):
                raise RuntimeError("encoding failed")
        handle.release_interface.assert_called_once_with(0)
        handle.close.assert_called_once()

    def test_release_failure_still_closes(self, handle: mock.MagicMock) -> None:
        handle.release_interface.side_effect = OSError("No such device")
        with claimed_interface(handle):
            pass
        handle.close.assert_called_once()


class TestWriteStream:
    def test_defaults(self, handle: mock.MagicMock) -> None:
        assert write_stream(handle, b"\x00" * 10) == 10
        handle.bulk_write.assert_called_once_with(ENDPOINT_OUT, b"\x00" * 10, WRITE_TIMEOUT_MS)
        assert ENDPOINT_OUT == 0x02
        assert WRITE_TIMEOUT_MS == 5000

    def test_short_write(self, handle: mock.MagicMock) -> None:
        handle.bulk_write.side_effect = None
        handle.bulk_write.return_value = 4
        with pytest.raises(ShortWriteError) as exc_info:
            write_stream(handle, b"\x1a" * 10)
        assert exc_info.value.sent == 4
        assert exc_info.value.expected == 10
        assert exc_info.value.message == "Failed to send data. Sent 4/10 bytes"

    def test_transfer_error_wrapped(self, handle: mock.MagicMock) -> None:
        handle.bulk_write.side_effect = usb.core.USBTimeoutError("Operation timed out")
        with pytest.raises(TransmissionError) as exc_info:
            write_stream(handle, b"\x1a")
        assert not isinstance(exc_info.value, ShortWriteError)


class TestPyUsbHandle:
    def test_product_id(self) -> None:
        device = mock.MagicMock(idProduct=0x20B8)
        assert PyUsbHandle(device).product_id == 0x20B8

    def test_bulk_write_passes_timeout(self) -> None:
        device = mock.MagicMock()
        device.write.return_value = 3
        assert PyUsbHandle(device).bulk_write(0x02, b"abc", 5000) == 3
        device.write.assert_called_once_with(0x02, b"abc", 5000)

    def test_claim_sets_configuration_when_unconfigured(self) -> None:
        device = mock.MagicMock()
        device.get_active_configuration.side_effect = usb.core.USBError("not configured")
        with mock.patch("usb.util.claim_interface") as claim:
            PyUsbHandle(device).claim_interface(0)
        device.set_configuration.assert_called_once_with()
        claim.assert_called_once_with(device, 0)

    def test_close_disposes_resources(self) -> None:
        device = mock.MagicMock()
        with mock.patch("usb.util.dispose_resources") as dispose:
            PyUsbHandle(device).close()
        dispose.assert_called_once_with(device)


class TestPyUsbBus:
    def test_first_match_without_serial(self) -> None:
        first, second = mock.MagicMock(idProduct=0x20B6), mock.MagicMock(idProduct=0x20B6)
        with mock.patch("usb.core.find", return_value=iter([first, second])) as find:
            handle = PyUsbBus().open(0x04F9, 0x20B6)
        assert handle is not None
        assert handle.device is first
        find.assert_called_once_with(find_all=True, idVendor=0x04F9, idProduct=0x20B6, backend=None)

    def test_serial_match(self) -> None:
        first, second = mock.MagicMock(idProduct=0x20B6), mock.MagicMock(idProduct=0x20B6)
        with mock.patch("usb.core.find", return_value=iter([first, second])), mock.patch(
            "usb.util.get_string", side_effect=["A0001", "B0002"]
        ):
            handle = PyUsbBus().open(0x04F9, 0x20B6, serial="B0002")
        assert handle is not None
        assert handle.device is second

    def test_unreadable_serial_skipped(self) -> None:
        device = mock.MagicMock(idProduct=0x20B6)
        with mock.patch("usb.core.find", return_value=iter([device])), mock.patch(
            "usb.util.get_string", side_effect=ValueError("langid")
        ):
            assert PyUsbBus().open(0x04F9, 0x20B6, serial="A0001") is None

    def test_nothing_attached(self) -> None:
        with mock.patch("usb.core.find", return_value=iter([])):
            assert PyUsbBus().open(0x04F9, 0x20B6) is None

    def test_missing_backend(self) -> None:
        with mock.patch("usb.core.find", side_effect=usb.core.NoBackendError("No backend available")):
            with pytest.raises(DeviceError, match="USB backend not available"):
                PyUsbBus().open(0x04F9, 0x20B6)

    def test_missing_backend_aborts_selection(self) -> None:
        with mock.patch("usb.core.find", side_effect=usb.core.NoBackendError("No backend available")):
            with pytest.raises(DeviceError) as exc_info:
                select_device(PyUsbBus(), VENDOR_ID, SelectionCriteria())
        assert not isinstance(exc_info.value, DeviceNotFoundError)
