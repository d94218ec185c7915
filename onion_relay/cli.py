# onion_relay/cli.py
import logging
import os
import shlex
import sys

from onion_relay import config
from onion_relay.codec import OnionCodec
from onion_relay.directory import Directory
from onion_relay.errors import OnionError
from onion_relay.network import Network
from onion_relay.relay import RelayAgent
from onion_relay.sender import SenderAgent

USAGE_SEND = 'Usage: send "<message>" to <user_id> | send "<message>" to address <address>'


class OnionRoutingCLI:
    def __init__(self, num_relays=config.DEFAULT_NUM_RELAYS, codec=None):
        self.codec = codec or OnionCodec()
        self.directory = Directory()
        self.network = Network()
        self.relays = {}
        self.users = {}
        self.current_user = None
        self.initialize_network(num_relays)

    def initialize_network(self, num_relays):
        for i in range(num_relays):
            self.relays[i] = RelayAgent(i, self.directory, self.network, codec=self.codec).start()
        print("[Network] Registered Relays:")
        for relay in self.relays.values():
            print(f"  - {relay.name} (address: {relay.address})")

    def start(self):
        print("\nWelcome to the Onion Routing CLI!")
        print("Type 'help' to see available commands.\n")
        while True:
            try:
                user_input = input("onion-routing> ")
            except (EOFError, KeyboardInterrupt):
                print("\nExiting Onion Routing CLI.")
                return
            if not self.execute(user_input):
                return

    def execute(self, line):
        """Run one command line. Returns False once the shell should stop."""
        if not line.strip():
            return True
        try:
            args = shlex.split(line)
        except ValueError as e:
            print(f"Error: {e}")
            return True
        command = args[0].lower()
        if command == "exit":
            print("Exiting Onion Routing CLI.")
            return False
        try:
            getattr(self, f"cmd_{command}", self.cmd_unknown)(args[1:])
        except (OnionError, ValueError) as e:
            print(f"Error: {e}")
        return True

    def cmd_help(self, args):
        help_text = """
Available Commands:
  login <user_id>                          : Login as a user (created on first login).
  logout                                   : Logout the current user.
  users                                    : List known users.
  relays                                   : List registered relays.
  send "<message>" to <user_id>            : Send a message to another user.
  send "<message>" to address <address>    : Send a message to a raw address.
  show messages                            : Show the last message received by the logged-in user.
  show circuit                             : Show the last circuit used by the logged-in user.
  status <relay_id>                        : Show what a relay last saw.
  draw [file.html]                         : Write the hop graph as an HTML page.
  clear                                    : Forget the recorded hops.
  exit                                     : Exit the CLI.
  help                                     : Show this help message.
"""
        print(help_text)

    def cmd_login(self, args):
        if self.current_user:
            print(f"Already logged in as {self.current_user.name}. Please logout first.")
            return
        if len(args) != 1:
            print("Usage: login <user_id>")
            return
        user_id = int(args[0])
        user = self.users.get(user_id)
        if not user:
            user = SenderAgent(user_id, self.directory, self.network, codec=self.codec).start()
            self.users[user_id] = user
            print(f"Registered new user: {user.name} (address: {user.address})")
        self.current_user = user
        print(f"Logged in as {user.name}.")

    def cmd_logout(self, args):
        if not self.current_user:
            print("No user is currently logged in.")
            return
        print(f"Logged out from {self.current_user.name}.")
        self.current_user = None

    def cmd_users(self, args):
        if not self.users:
            print("No users registered.")
        for user in self.users.values():
            print(f"  - {user.name} (address: {user.address})")

    def cmd_relays(self, args):
        for relay in self.directory.get_all_relays():
            print(f"  - Relay {relay.relay_id} (address: {relay.address})")

    def cmd_send(self, args):
        if not self.current_user:
            print("Please login as a user first.")
            return
        if len(args) == 3 and args[1].lower() == "to":
            recipient_id = int(args[2])
            if recipient_id not in self.users:
                print(f"User {recipient_id} does not exist. Please ensure they have logged in once.")
                return
            circuit = self.current_user.send_to_user(recipient_id, args[0])
        elif len(args) == 4 and args[1].lower() == "to" and args[2].lower() == "address":
            circuit = self.current_user.send(int(args[3]), args[0])
        else:
            print(USAGE_SEND)
            return
        print(f"Message sent through Relays {circuit.ids}.")

    def cmd_show(self, args):
        if not self.current_user:
            print("Please login as a user first.")
            return
        if len(args) != 1 or args[0].lower() not in ("messages", "circuit"):
            print("Usage: show messages | show circuit")
            return
        if args[0].lower() == "circuit":
            circuit = self.current_user.get_last_circuit()
            print(f"Last circuit: {circuit}" if circuit else "No circuit built yet.")
            return
        message = self.current_user.get_last_received_message()
        if message is None:
            print("No messages received.")
            return
        try:
            print(f"Last received message: {message.decode('utf-8')}")
        except UnicodeDecodeError:
            print(f"Last received message (binary): {message.hex()}")

    def cmd_status(self, args):
        if len(args) != 1:
            print("Usage: status <relay_id>")
            return
        relay = self.relays.get(int(args[0]))
        if not relay:
            print(f"Relay {args[0]} does not exist.")
            return
        encrypted = relay.get_last_received_encrypted_message()
        decrypted = relay.get_last_received_decrypted_message()
        print(f"{relay.name}: {relay.status()}")
        print(f"  - Last encrypted message: {len(encrypted) if encrypted else 0} bytes")
        print(f"  - Last decrypted payload: {len(decrypted) if decrypted else 0} bytes")
        print(f"  - Last destination: {relay.get_last_message_destination()}")

    def cmd_draw(self, args):
        output_file = args[0] if args else "onion_routing_simulation.html"
        self.network.trace.render_html(output_file, subtitle="Onion routing hops")
        print(f"Wrote hop graph to '{output_file}'.")

    def cmd_clear(self, args):
        self.network.trace.clear()
        print("Cleared the hop trace.")

    def cmd_unknown(self, args):
        print("Unknown command. Type 'help' to see available commands.")


def main():
    logging.basicConfig(
        level=os.environ.get("ONION_LOG_LEVEL", "INFO"),
        format="%(message)s",
    )
    cli = OnionRoutingCLI()
    cli.start()
    sys.exit(0)


if __name__ == "__main__":
    main()
