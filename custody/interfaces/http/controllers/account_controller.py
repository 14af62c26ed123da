# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, g, jsonify, request
from pydantic import ValidationError

from custody.application import Ledger, SessionAuthenticator
from custody.domain.ledger import InsufficientBalanceError
from custody.infrastructure.audit import AuditAction, AuditLogger
from custody.interfaces.http.auth import auth_required
from custody.interfaces.http.dto.account import AmountRequestDTO, BalanceDTO
from custody.shared.errors.validation import raise_validation_error
from custody.shared.middleware.rate_limit import client_ip


def _parse_amount() -> int:
    try:
        dto = AmountRequestDTO.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        raise_validation_error(exc)
    return dto.amount


def _balance_response(account_id: str, balance: int) -> Response:
    return jsonify(BalanceDTO(account_id=account_id, balance=balance).model_dump(by_alias=True))


class AccountController:
    def __init__(
        self,
        *,
        ledger: Ledger,
        authenticator: SessionAuthenticator,
        audit: AuditLogger,
    ) -> None:
        self._ledger = ledger
        self._authenticator = authenticator
        self._audit = audit

    def show(self) -> Response:
        account = self._ledger.account_for_owner(g.user_id)
        return _balance_response(account.id, self._ledger.get_balance(account.id))

    def deposit(self) -> Response:
        amount = _parse_amount()
        account = self._ledger.account_for_owner(g.user_id)

        balance = self._ledger.deposit(account.id, amount)

        self._audit.log(
            AuditAction.DEPOSIT,
            user_id=g.user_id,
            ip_address=client_ip(request),
            details={"account_id": account.id, "amount": amount},
        )
        return _balance_response(account.id, balance)

    def withdraw(self) -> Response:
        amount = _parse_amount()
        account = self._ledger.account_for_owner(g.user_id)

        try:
            balance = self._ledger.withdraw(account.id, amount)
        except InsufficientBalanceError:
            self._audit.log(
                AuditAction.WITHDRAW_REJECTED,
                user_id=g.user_id,
                ip_address=client_ip(request),
                details={"account_id": account.id, "amount": amount},
                success=False,
            )
            raise

        self._audit.log(
            AuditAction.WITHDRAW,
            user_id=g.user_id,
            ip_address=client_ip(request),
            details={"account_id": account.id, "amount": amount},
        )
        return _balance_response(account.id, balance)

    def as_blueprint(self) -> Blueprint:
        protected = auth_required(self._authenticator)
        bp = Blueprint("account", __name__, url_prefix="/api/account")
        bp.add_url_rule("", view_func=protected(self.show), methods=["GET"])
        bp.add_url_rule("/deposit", view_func=protected(self.deposit), methods=["POST"])
        bp.add_url_rule("/withdraw", view_func=protected(self.withdraw), methods=["POST"])
        return bp
