import logging

from onion_relay.codec import OnionCodec
from onion_relay.directory import Directory
from onion_relay.network import Network
from onion_relay.relay import RelayAgent
from onion_relay.sender import SenderAgent


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    directory = Directory()
    network = Network()
    codec = OnionCodec()

    num_relays = 5
    for i in range(num_relays):
        RelayAgent(i, directory, network, codec=codec).start()
    print("[Network] Registered relays:", [relay.relay_id for relay in directory.get_all_relays()])

    alice = SenderAgent(100, directory, network, codec=codec).start()
    bob = SenderAgent(200, directory, network, codec=codec).start()
    print(f"[Network] Registered users: Alice ({alice.address}), Bob ({bob.address})")

    alice.send_to_user(bob.user_id, "Hello Bob! This is Alice.")
    bob.send_to_user(alice.user_id, "Hi Alice! Bob here.")

    print("[Network] Hops:", network.trace.path_from(0))


if __name__ == "__main__":
    main()
