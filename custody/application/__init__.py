# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .services.account_locks import AccountLocks
from .services.authenticator import SessionAuthenticator
from .services.ledger import Ledger
from .services.password_hashing import WerkzeugPasswordHasher
from .services.tokens import StatefulTokenStrategy, StatelessTokenStrategy

__all__ = [
    "AccountLocks",
    "Ledger",
    "SessionAuthenticator",
    "StatefulTokenStrategy",
    "StatelessTokenStrategy",
    "WerkzeugPasswordHasher",
]
