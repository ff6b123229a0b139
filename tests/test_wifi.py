import io
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from occi import wifi as wifi_module
from occi.core import Settings
from occi.diagnostics import DiagnosticLogger
from occi.system import CommandResult
from occi.wifi import handle_wifi, render_supplicant_config


IP_LINK_WIRELESS = (
    "1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 qdisc noqueue state UNKNOWN\\    link/loopback 00:00:00:00:00:00\n"
    "2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc pfifo_fast state UP\\    link/ether b8:27:eb:00:00:01\n"
    "3: wlan0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc mq state UP\\    link/ether b8:27:eb:00:00:02\n"
)
IP_LINK_WIRED = IP_LINK_WIRELESS.splitlines(keepends=True)[0] + IP_LINK_WIRELESS.splitlines(keepends=True)[1]
NETWORK_BLOCK = 'network={\n\tssid="lab"\n\t#psk="secret-pass"\n\tpsk=0123abcd\n}\n'


class FakeRadio:
    def __init__(self, link_output: str, passphrase_output: str = NETWORK_BLOCK) -> None:
        self.link_output = link_output
        self.passphrase_output = passphrase_output
        self.commands = []

    def __call__(self, command):
        command = list(command)
        self.commands.append(command)
        if command[:2] == ["ip", "-o"]:
            return CommandResult(0, self.link_output)
        if command[0] == "wpa_passphrase":
            if not self.passphrase_output:
                return CommandResult(1, "Passphrase must be 8..63 characters\n")
            return CommandResult(0, self.passphrase_output)
        if command == ["wpa_cli", "reconfigure"]:
            return CommandResult(0, "Selected interface 'wlan0'\nOK\n")
        if command[0] == "iwconfig":
            return CommandResult(0, "")
        return CommandResult(127, f"command not found: {command[0]}")


class TestHandleWifi(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = TemporaryDirectory()
        root = Path(self._temp_dir.name)
        self.settings = Settings(
            wpa_supplicant_path=root / "wpa_supplicant" / "wpa_supplicant.conf",
            config_path=Path("/boot/occidentalis.txt"),
        )
        self.stream = io.StringIO()
        self.log = DiagnosticLogger(("run", "wifi"), self.stream)

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_without_ssid_is_noop(self) -> None:
        fake = FakeRadio(IP_LINK_WIRELESS)
        with mock.patch("occi.system.run_command", fake):
            lines = handle_wifi({"wifi_password": "secret-pass"}, self.log, self.settings)

        self.assertEqual(lines, ["no wifi_ssid configured, nothing to do"])
        self.assertEqual(fake.commands, [])

    def test_no_hardware_writes_nothing(self) -> None:
        fake = FakeRadio(IP_LINK_WIRED)
        with mock.patch("occi.system.run_command", fake):
            with mock.patch.object(wifi_module, "write_file") as write_file:
                lines = handle_wifi({"wifi_ssid": "lab", "wifi_password": "secret-pass"}, self.log, self.settings)

        write_file.assert_not_called()
        self.assertEqual(lines, ["no wireless hardware found"])
        self.assertEqual(fake.commands, [["ip", "-o", "link", "show"]])

    def test_password_writes_supplicant_config(self) -> None:
        fake = FakeRadio(IP_LINK_WIRELESS)
        with mock.patch("occi.system.run_command", fake):
            lines = handle_wifi({"wifi_ssid": "lab", "wifi_password": "secret-pass"}, self.log, self.settings)

        content = self.settings.wpa_supplicant_path.read_text(encoding="utf-8")
        self.assertTrue(content.startswith("ctrl_interface=DIR=/var/run/wpa_supplicant GROUP=netdev\n"))
        self.assertIn("# this file is managed by occi via /boot/occidentalis.txt", content)
        self.assertIn("update_config=1\n", content)
        self.assertTrue(content.endswith(NETWORK_BLOCK))
        self.assertIn(["wpa_passphrase", "lab", "secret-pass"], fake.commands)
        self.assertIn(["wpa_cli", "reconfigure"], fake.commands)
        self.assertIn("wpa_cli :: OK", lines)
        self.assertIn("run :: wifi :: interfaces :: wlan0", self.stream.getvalue())

    def test_existing_config_is_backed_up_once(self) -> None:
        path = self.settings.wpa_supplicant_path
        path.parent.mkdir(parents=True)
        path.write_text("ctrl_interface=/var/run/wpa_supplicant\n", encoding="utf-8")
        fake = FakeRadio(IP_LINK_WIRELESS)
        with mock.patch("occi.system.run_command", fake):
            handle_wifi({"wifi_ssid": "lab", "wifi_password": "secret-pass"}, self.log, self.settings)
            fake.passphrase_output = NETWORK_BLOCK.replace("lab", "lab-2")
            handle_wifi({"wifi_ssid": "lab-2", "wifi_password": "secret-pass"}, self.log, self.settings)

        backup = self.settings.wpa_supplicant_backup_path
        self.assertEqual(backup.read_text(encoding="utf-8"), "ctrl_interface=/var/run/wpa_supplicant\n")
        self.assertIn('ssid="lab-2"', path.read_text(encoding="utf-8"))

    def test_unchanged_config_skips_reconfigure(self) -> None:
        path = self.settings.wpa_supplicant_path
        path.parent.mkdir(parents=True)
        path.write_text(render_supplicant_config(NETWORK_BLOCK, self.settings), encoding="utf-8")
        fake = FakeRadio(IP_LINK_WIRELESS)
        with mock.patch("occi.system.run_command", fake):
            with mock.patch.object(wifi_module, "write_file") as write_file:
                lines = handle_wifi({"wifi_ssid": "lab", "wifi_password": "secret-pass"}, self.log, self.settings)

        write_file.assert_not_called()
        self.assertNotIn(["wpa_cli", "reconfigure"], fake.commands)
        self.assertEqual(lines, [f"{path} :: lab :: unchanged"])

    def test_failed_passphrase_still_writes_boilerplate(self) -> None:
        fake = FakeRadio(IP_LINK_WIRELESS, passphrase_output="")
        with mock.patch("occi.system.run_command", fake):
            handle_wifi({"wifi_ssid": "lab", "wifi_password": "short"}, self.log, self.settings)

        content = self.settings.wpa_supplicant_path.read_text(encoding="utf-8")
        self.assertNotIn("network={", content)
        self.assertNotIn("Passphrase must be", content)
        self.assertTrue(content.endswith("update_config=1\n\n\n"))
        self.assertIn(
            "run :: wifi :: ERROR :: wpa_passphrase lab short :: Passphrase must be 8..63 characters",
            self.stream.getvalue(),
        )

    def test_missing_wpa_passphrase_leaves_no_error_text_in_config(self) -> None:
        def run(command, **kwargs):
            if command[0] == "wpa_passphrase":
                raise FileNotFoundError(command[0])
            return mock.DEFAULT

        completed = mock.Mock(returncode=0, stdout=IP_LINK_WIRELESS)
        with mock.patch("occi.system.subprocess.run", side_effect=run, return_value=completed):
            handle_wifi({"wifi_ssid": "lab", "wifi_password": "secret-pass"}, self.log, self.settings)

        content = self.settings.wpa_supplicant_path.read_text(encoding="utf-8")
        self.assertNotIn("command not found", content)
        self.assertIn("ERROR :: wpa_passphrase lab secret-pass :: command not found: wpa_passphrase", self.stream.getvalue())

    def test_without_password_sets_essid_on_wlan0(self) -> None:
        fake = FakeRadio(IP_LINK_WIRELESS)
        with mock.patch("occi.system.run_command", fake):
            with mock.patch.object(wifi_module, "write_file") as write_file:
                lines = handle_wifi({"wifi_ssid": "Open Cafe"}, self.log, self.settings)

        write_file.assert_not_called()
        self.assertIn(["iwconfig", "wlan0", "essid", "Open Cafe"], fake.commands)
        self.assertEqual(lines, ["wlan0 :: essid Open Cafe"])


if __name__ == "__main__":
    unittest.main()
