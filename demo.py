from idkeep import Buffer, IdentityManager, TrustedFingerprints, configure_logging
import asyncio
import os

import pgpy
from pgpy.constants import HashAlgorithm, KeyFlags, PubKeyAlgorithm, SymmetricKeyAlgorithm


def new_key(name, email):
    key = pgpy.PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    key.add_uid(
        pgpy.PGPUID.new(name, email=email),
        usage={KeyFlags.Sign, KeyFlags.EncryptCommunications, KeyFlags.EncryptStorage},
        hashes=[HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
    )
    return key


async def main():
    configure_logging("WARNING")
    manager = IdentityManager("demo.db")
    print("[+] Manager initialized with demo.db")

    # 1. Generate two key pairs
    alice = new_key("Alice", "alice@example.com")
    work = new_key("Alice (work)", "alice@work.example.com")
    print("[+] Generated two key pairs")

    # 2. Import Alice's public key only
    handle = manager.open_import()
    result = await manager.import_or_update(handle, public_key_text=str(alice.pubkey))
    fingerprint = result.unwrap()
    print(f"[+] Imported public key: {fingerprint[:8]}...")

    # 3. Importing it again is refused
    result = await manager.import_or_update(manager.open_import(), public_key_text=str(alice.pubkey))
    print(f"[+] Second import: {result.kind}")

    # 4. Add the private key in edit mode
    handle = await manager.open_edit(fingerprint)
    print(f"[*] Public key read-only while editing: {handle.read_only}")
    handle.buffers.set(Buffer.PRIVATE_KEY, str(alice))
    result = await manager.import_or_update(handle)
    print(f"[+] Added private key: {result.ok}")

    # 5. A mismatched pair is rejected
    result = await manager.verify(str(alice.pubkey), str(work))
    print(f"[+] Mismatched pair: {result.kind}")

    # 6. Resolve a login with two matching identities
    await manager.import_or_update(manager.open_import(), public_key_text=str(work.pubkey))
    resolver = manager.resolver(TrustedFingerprints([fingerprint, str(work.fingerprint).replace(" ", "").upper()]))
    state = await resolver.resolve()
    print(f"[+] Login resolution: {type(state).__name__} ({len(state.candidates)} candidates)")
    state = resolver.pick_one()
    print(f"[+] Picked: {state.identity.name}")

    health = await manager.health_check()
    print(f"[+] Health: {health['status']}, {health['identities']} identities")
    manager.close()


if __name__ == "__main__":
    # Clean up previous demo db if exists
    if os.path.exists("demo.db"):
        os.remove("demo.db")

    print("--- idkeep Demo ---")
    asyncio.run(main())

    for suffix in ("", "-wal", "-shm"):
        if os.path.exists("demo.db" + suffix):
            os.remove("demo.db" + suffix)
    print("--- Demo Complete ---")
