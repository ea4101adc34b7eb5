# Vault API - local HTTP surface for the UI layer
