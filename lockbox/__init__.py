"""
Lockbox Password Vault

A local password vault: a master password protects a list of credential
records stored as a single encrypted file. Key derivation uses Argon2id and
the vault is sealed with AES-256-GCM. Nothing leaves the device.
"""
