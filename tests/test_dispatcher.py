"""Unit tests for CommandDispatcher."""

import unittest
from unittest.mock import MagicMock

from axis_bridge.dispatcher import CommandDispatcher
from axis_bridge.errors import (
    DeviceCommandError,
    DeviceFaultError,
    DeviceTimeoutError,
    InvalidArgumentsError,
    UnsupportedActionError,
)
from axis_bridge.link import DeviceLink
from axis_bridge.models import CommandRequest, Unit
from axis_bridge.poller import TelemetryPoller

from tests.fakes import FakeChannel


class DispatcherTestCase(unittest.TestCase):

    def setUp(self):
        self.channel = FakeChannel()
        self.link = DeviceLink(channel=self.channel, timeout=0.1)
        self.poller = MagicMock(spec=TelemetryPoller)
        self.poller.refresh.return_value = True

        self.dispatcher = CommandDispatcher(self.link, poller=self.poller)
        self.dispatcher.add_unit(Unit(1, "cross-slide"))
        self.dispatcher.add_unit(Unit(2, "feed", actions=frozenset({"stop"})))


class TestValidation(DispatcherTestCase):
    """Requests rejected before any device traffic."""

    def test_unknown_action(self):
        with self.assertRaises(UnsupportedActionError) as ctx:
            self.dispatcher.invoke(1, "dance")

        self.assertEqual(ctx.exception.action, "dance")
        self.assertEqual(self.channel.writes, [])

    def test_action_outside_capabilities(self):
        with self.assertRaises(UnsupportedActionError):
            self.dispatcher.invoke(2, "home")
        self.assertEqual(self.channel.writes, [])

    def test_unknown_unit(self):
        with self.assertRaises(UnsupportedActionError):
            self.dispatcher.invoke(9, "stop")
        self.assertEqual(self.channel.writes, [])

    def test_invalid_arguments(self):
        with self.assertRaises(InvalidArgumentsError):
            self.dispatcher.invoke(1, "move")
        with self.assertRaises(InvalidArgumentsError):
            self.dispatcher.invoke(1, "move", "here")
        self.assertEqual(self.channel.writes, [])


class TestExecution(DispatcherTestCase):
    """Requests that reach the device."""

    def test_move(self):
        self.channel.replies[(1, "move abs 5")] = "@01 0 OK BUSY -- 0"

        result = self.dispatcher.invoke(1, "move", 5.0)

        self.assertEqual(self.channel.writes, [(1, "move abs 5")])
        self.assertEqual(result.unit_id, 1)
        self.assertEqual(result.action, "move")
        self.assertTrue(result.busy)

    def test_execute_request(self):
        result = self.dispatcher.execute(CommandRequest(1, "move_relative", (-2.5,)))

        self.assertEqual(self.channel.writes, [(1, "move rel -2.5")])
        self.assertEqual(result.data, "0")

    def test_home(self):
        self.dispatcher.invoke(1, "home")
        self.assertEqual(self.channel.writes, [(1, "home")])

    def test_device_error_wrapped(self):
        self.channel.replies[(1, "home")] = "@01 0 RJ IDLE -- BADCOMMAND"

        with self.assertRaises(DeviceCommandError) as ctx:
            self.dispatcher.invoke(1, "home")

        self.assertIsInstance(ctx.exception.cause, DeviceFaultError)
        self.assertIs(ctx.exception.__cause__, ctx.exception.cause)
        self.poller.refresh.assert_not_called()

    def test_timeout_wrapped(self):
        self.channel.replies[(1, "stop")] = None

        with self.assertRaises(DeviceCommandError) as ctx:
            self.dispatcher.invoke(1, "stop")

        self.assertIsInstance(ctx.exception.cause, DeviceTimeoutError)

    def test_stop_twice_same_outcome(self):
        first = self.dispatcher.invoke(1, "stop")
        second = self.dispatcher.invoke(1, "stop")
        self.assertEqual(first, second)

        self.channel.replies[(1, "stop")] = None
        kinds = []
        for _ in range(2):
            try:
                self.dispatcher.invoke(1, "stop")
            except DeviceCommandError as e:
                kinds.append(type(e.cause))
        self.assertEqual(kinds, [DeviceTimeoutError, DeviceTimeoutError])


class TestRefresh(DispatcherTestCase):
    """Post-command refresh of published state."""

    def test_refresh_after_success(self):
        self.dispatcher.invoke(1, "home")
        self.poller.refresh.assert_called_once_with(1)

    def test_refresh_failure_does_not_mask_success(self):
        self.poller.refresh.side_effect = RuntimeError("publish broke")

        result = self.dispatcher.invoke(1, "home")

        self.assertEqual(result.action, "home")

    def test_refresh_bad_sample_does_not_mask_success(self):
        self.poller.refresh.return_value = False
        self.dispatcher.invoke(1, "stop")

    def test_refresh_disabled(self):
        dispatcher = CommandDispatcher(self.link, poller=self.poller, refresh_after_command=False)
        dispatcher.add_unit(Unit(1, "cross-slide"))

        dispatcher.invoke(1, "home")

        self.poller.refresh.assert_not_called()

    def test_no_poller(self):
        dispatcher = CommandDispatcher(self.link)
        dispatcher.add_unit(Unit(1, "cross-slide"))
        self.assertEqual(dispatcher.invoke(1, "stop").action, "stop")


class TestStopAll(DispatcherTestCase):
    """Stopping every unit."""

    def test_stop_all(self):
        results = self.dispatcher.stop_all()

        self.assertEqual([r.unit_id for r in results], [1, 2])
        self.assertEqual(self.channel.writes, [(1, "stop"), (2, "stop")])

    def test_stop_all_tries_every_unit(self):
        self.channel.replies[(1, "stop")] = None

        with self.assertRaises(DeviceCommandError) as ctx:
            self.dispatcher.stop_all()

        self.assertEqual(ctx.exception.unit_id, 1)
        self.assertEqual(self.channel.writes, [(1, "stop"), (2, "stop")])


if __name__ == '__main__':
    unittest.main()
