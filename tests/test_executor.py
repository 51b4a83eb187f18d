"""Tests for CommandExecutor against scripted command output."""
import pytest

from splitr.command.executor import CommandExecutor
from splitr.errors import CommandError, NetworkInfoUnavailableError, VPNServiceNotFoundError
from splitr.schema import Network, NetworkHostSetup

from conftest import ScriptedRunner

ROUTE_GET_DEFAULT = """   route to: default
destination: default
       mask: default
    gateway: 192.168.1.1
  interface: en0
      flags: <UP,GATEWAY,DONE,STATIC,PRSCOPE>
 recvpipe  sendpipe  ssthresh  rtt,msec    rttvar  hopcount      mtu     expire
       0         0         0         0         0         0      1500         0
"""

SERVICE_ORDER = """An asterisk (*) denotes that a network service is disabled.
(1) Wi-Fi
(Hardware Port: Wi-Fi, Device: en0)

(2) Thunderbolt Bridge
(Hardware Port: Thunderbolt Bridge, Device: bridge0)

(3) Office
(Hardware Port: L2TP, Device: )
"""

GET_INFO = """DHCP Configuration
IP address: 192.168.1.23
Subnet mask: 255.255.255.0
Router: 192.168.1.1
Client ID:
IPv6: Automatic
IPv6 IP address: none
IPv6 Router: none
Wi-Fi ID: a4:83:e7:00:00:00
"""

SCUTIL_LIST = """Available network connection services in the current set (*=enabled):
* (Disconnected)   5A1B2C PPP --> L2TP            "Home"                           [PPP:L2TP]
* (Connected)      1C2E3A PPP --> L2TP            "Office"                         [PPP:L2TP]
* (Connected)      9F8E7D IPSec                   "Branch"                         [IPSec]
"""


@pytest.fixture
def runner():
    return ScriptedRunner()


@pytest.fixture
def executor(runner):
    return CommandExecutor(runner=runner)


class TestDefaultNetworkInterface:
    """Tests for get_default_network_interface."""

    @pytest.mark.asyncio
    async def test_parses_interface(self, runner, executor):
        """Interface is taken from the 'interface:' line."""
        runner.set_output(["route", "get", "default"], ROUTE_GET_DEFAULT)

        assert await executor.get_default_network_interface() == "en0"
        assert runner.commands[0].argv() == ["route", "get", "default"]

    @pytest.mark.asyncio
    async def test_last_match_wins(self, runner, executor):
        """With several interface lines the last one is used."""
        runner.set_output(["route", "get", "default"], "interface: en0\ninterface: en7\n")

        assert await executor.get_default_network_interface() == "en7"

    @pytest.mark.asyncio
    async def test_label_without_value_is_skipped(self, runner, executor):
        """A bare 'interface:' line does not overwrite an earlier match."""
        runner.set_output(["route", "get", "default"], "interface: en0\n  interface:\n")

        assert await executor.get_default_network_interface() == "en0"

    @pytest.mark.asyncio
    async def test_missing_interface(self, runner, executor):
        """No interface line raises NetworkInfoUnavailableError."""
        runner.set_output(["route", "get", "default"], "route: writing to routing socket: not in table\n")

        with pytest.raises(NetworkInfoUnavailableError) as exc_info:
            await executor.get_default_network_interface()
        assert exc_info.value.step == "interface"

    @pytest.mark.asyncio
    async def test_command_failure_propagates(self, runner, executor):
        """Runner errors are not swallowed."""
        runner.set_output(["route", "get", "default"], CommandError("exit status 1"))

        with pytest.raises(CommandError):
            await executor.get_default_network_interface()


class TestNetworkServiceByInterface:
    """Tests for get_network_service_by_network_interface."""

    @pytest.mark.asyncio
    async def test_finds_service(self, runner, executor):
        """Service name comes from the line before the matching detail line."""
        runner.set_output(["networksetup", "-listnetworkserviceorder"], SERVICE_ORDER)

        assert await executor.get_network_service_by_network_interface("en0") == "Wi-Fi"
        assert await executor.get_network_service_by_network_interface("bridge0") == "Thunderbolt Bridge"

    @pytest.mark.asyncio
    async def test_first_match_wins(self, runner, executor):
        """With two services on one interface the first is used."""
        output = "(1) Ethernet\n(Hardware Port: Ethernet, Device: en0)\n(2) Wi-Fi\n(Hardware Port: Wi-Fi, Device: en0)\n"
        runner.set_output(["networksetup", "-listnetworkserviceorder"], output)

        assert await executor.get_network_service_by_network_interface("en0") == "Ethernet"

    @pytest.mark.asyncio
    async def test_interface_match_is_substring(self, runner, executor):
        """en1 also matches a detail line for en10."""
        output = "(1) USB LAN\n(Hardware Port: USB LAN, Device: en10)\n(2) Wi-Fi\n(Hardware Port: Wi-Fi, Device: en1)\n"
        runner.set_output(["networksetup", "-listnetworkserviceorder"], output)

        assert await executor.get_network_service_by_network_interface("en1") == "USB LAN"

    @pytest.mark.asyncio
    async def test_disabled_service_is_skipped(self, runner, executor):
        """A (*) service line is not a match even if its device fits."""
        output = "(*) Wi-Fi\n(Hardware Port: Wi-Fi, Device: en0)\n"
        runner.set_output(["networksetup", "-listnetworkserviceorder"], output)

        with pytest.raises(NetworkInfoUnavailableError) as exc_info:
            await executor.get_network_service_by_network_interface("en0")
        assert exc_info.value.step == "service"

    @pytest.mark.asyncio
    async def test_unknown_interface(self, runner, executor):
        """Unknown interface raises NetworkInfoUnavailableError."""
        runner.set_output(["networksetup", "-listnetworkserviceorder"], SERVICE_ORDER)

        with pytest.raises(NetworkInfoUnavailableError, match="utun4"):
            await executor.get_network_service_by_network_interface("utun4")


class TestNetworkInfo:
    """Tests for get_network_info_by_network_service."""

    @pytest.mark.asyncio
    async def test_parses_mask_and_router(self, runner, executor):
        """Subnet mask and IPv4 router are extracted."""
        runner.set_output(["networksetup", "-getinfo", "Wi-Fi"], GET_INFO)

        info = await executor.get_network_info_by_network_service("Wi-Fi")

        assert info.subnet_mask == "255.255.255.0"
        assert info.router == "192.168.1.1"
        assert str(info) == "Subnet Mask: 255.255.255.0, Router: 192.168.1.1"

    @pytest.mark.asyncio
    async def test_service_name_is_one_argument(self, runner, executor):
        """Service names with spaces are passed as a single argv entry."""
        runner.set_output(["networksetup", "-getinfo", "USB 10/100 LAN"], GET_INFO)

        await executor.get_network_info_by_network_service("USB 10/100 LAN")

        assert runner.commands[0].argv() == ["networksetup", "-getinfo", "USB 10/100 LAN"]

    @pytest.mark.asyncio
    async def test_last_match_wins(self, runner, executor):
        """Later mask and router lines override earlier ones."""
        output = "Subnet mask: 255.0.0.0\nRouter: 10.0.0.1\nSubnet mask: 255.255.0.0\nRouter: 10.0.0.254\n"
        runner.set_output(["networksetup", "-getinfo", "Wi-Fi"], output)

        info = await executor.get_network_info_by_network_service("Wi-Fi")

        assert info.subnet_mask == "255.255.0.0"
        assert info.router == "10.0.0.254"

    @pytest.mark.asyncio
    async def test_missing_router(self, runner, executor):
        """Both values are required."""
        runner.set_output(["networksetup", "-getinfo", "Wi-Fi"], "Subnet mask: 255.255.255.0\nRouter: none\n")

        with pytest.raises(NetworkInfoUnavailableError) as exc_info:
            await executor.get_network_info_by_network_service("Wi-Fi")
        assert exc_info.value.step == "info"


class TestSetAdditionalRoutes:
    """Tests for set_network_additional_routes."""

    @pytest.mark.asyncio
    async def test_argv_lists_route_triples(self, runner, executor):
        """Each setup contributes ip, mask and router in order."""
        setups = [
            NetworkHostSetup(network_host_id=1, network_host_ip="10.0.0.5", subnet_mask="255.255.255.0", router="10.0.0.1"),
            NetworkHostSetup(network_host_id=2, network_host_ip="10.0.0.6", subnet_mask="255.255.255.0", router="10.0.0.1"),
        ]

        await executor.set_network_additional_routes(Network(id=1, name="Office"), setups)

        assert runner.commands[0].argv() == [
            "networksetup", "-setadditionalroutes", "Office",
            "10.0.0.5", "255.255.255.0", "10.0.0.1",
            "10.0.0.6", "255.255.255.0", "10.0.0.1",
        ]

    @pytest.mark.asyncio
    async def test_empty_list_clears_routes(self, runner, executor):
        """No setups means only the service name is passed."""
        await executor.set_network_additional_routes(Network(id=1, name="Office"), [])

        assert runner.commands[0].argv() == ["networksetup", "-setadditionalroutes", "Office"]

    @pytest.mark.asyncio
    async def test_failure_propagates(self, runner, executor):
        """A failing networksetup call raises CommandError."""
        runner.set_output(
            ["networksetup", "-setadditionalroutes", "Office"],
            CommandError("exit status 4", returncode=4),
        )

        with pytest.raises(CommandError):
            await executor.set_network_additional_routes(Network(id=1, name="Office"), [])


class TestVPN:
    """Tests for list_vpn and get_current_vpn."""

    @pytest.mark.asyncio
    async def test_list_only_l2tp(self, runner, executor):
        """Only L2TP services are listed, connected or not."""
        runner.set_output(["scutil", "--nc", "list"], SCUTIL_LIST)

        assert await executor.list_vpn() == ["Home", "Office"]

    @pytest.mark.asyncio
    async def test_current_vpn(self, runner, executor):
        """The connected L2TP service is returned."""
        runner.set_output(["scutil", "--nc", "list"], SCUTIL_LIST)

        assert await executor.get_current_vpn() == "Office"

    @pytest.mark.asyncio
    async def test_first_connected_wins(self, runner, executor):
        """With two connected L2TP lines the first is returned."""
        output = (
            '* (Connected) A PPP --> L2TP "First" [PPP:L2TP]\n'
            '* (Connected) B PPP --> L2TP "Second" [PPP:L2TP]\n'
        )
        runner.set_output(["scutil", "--nc", "list"], output)

        assert await executor.get_current_vpn() == "First"

    @pytest.mark.asyncio
    async def test_no_connected_vpn_is_sentinel(self, runner, executor):
        """No connected L2TP service raises VPNServiceNotFoundError."""
        output = '* (Disconnected) A PPP --> L2TP "Office" [PPP:L2TP]\n'
        runner.set_output(["scutil", "--nc", "list"], output)

        with pytest.raises(VPNServiceNotFoundError):
            await executor.get_current_vpn()

    @pytest.mark.asyncio
    async def test_connected_ipsec_is_ignored(self, runner, executor):
        """Other VPN types never count as connected."""
        output = '* (Connected) A IPSec "Branch" [IPSec]\n'
        runner.set_output(["scutil", "--nc", "list"], output)

        with pytest.raises(VPNServiceNotFoundError):
            await executor.get_current_vpn()

    @pytest.mark.asyncio
    async def test_empty_output(self, runner, executor):
        """Empty output lists nothing."""
        assert await executor.list_vpn() == []


class TestOpenInFinder:
    """Tests for open_in_finder."""

    @pytest.mark.asyncio
    async def test_reveals_path(self, runner, executor):
        """Path is revealed with open -R."""
        await executor.open_in_finder("/tmp/splitr.db")

        assert runner.commands[0].argv() == ["open", "-R", "/tmp/splitr.db"]
