"""
Order builder with EIP-712 signing.

Turns human order terms (price, size, side) into a signed CTF exchange order.
All economics are Decimal and truncate toward zero; nothing is signed until
every field has been validated.
"""

import hashlib
import secrets
from decimal import Decimal, localcontext
from typing import Optional, Union
import logging

from ..auth.eip712_models import Order, exchange_domain, typed_data_hash
from ..auth.key_material import KeyMaterial
from ..config import get_contract_config
from ..exceptions import ValidationError, SigningError
from ..metrics import Metrics
from ..models import (
    OrderArgs, MarketOrderArgs, CreateOrderOptions, SignedOrder,
    Side, SignatureType, TickSize, RoundConfig, ZERO_ADDRESS,
)
from ..utils.numeric import AMOUNT_CONTEXT, round_down, to_token_units
from ..utils.validators import (
    MAX_UINT256, validate_price, validate_size, validate_token_id, validate_uint, validate_address,
)

logger = logging.getLogger(__name__)

# Salt is a JSON integer on the wire; stay within exactly-representable range
SALT_BITS = 53


def get_order_amounts(
    side: Side,
    size: Decimal,
    price: Decimal,
    round_config: RoundConfig
) -> tuple[int, int]:
    """
    Limit order maker/taker amounts in base units.

    BUY pays size * price collateral for size shares.
    SELL gives size shares for size * price collateral.

    Args:
        side: Order side
        size: Share quantity (already validated)
        price: Price per share (already validated)
        round_config: Decimal places for the market's tick

    Returns:
        (maker_amount, taker_amount)
    """
    with localcontext(AMOUNT_CONTEXT):
        shares = round_down(size, round_config.size)
        collateral = round_down(shares * price, round_config.amount)

    if side == Side.BUY:
        return to_token_units(collateral), to_token_units(shares)
    return to_token_units(shares), to_token_units(collateral)


def get_market_order_amounts(
    side: Side,
    amount: Decimal,
    price: Decimal,
    round_config: RoundConfig
) -> tuple[int, int]:
    """
    Market order maker/taker amounts in base units.

    BUY spends amount collateral for amount / price shares.
    SELL gives amount shares for amount * price collateral.
    """
    with localcontext(AMOUNT_CONTEXT):
        maker = round_down(amount, round_config.size)
        if side == Side.BUY:
            taker = round_down(maker / price, round_config.amount)
        else:
            taker = round_down(maker * price, round_config.amount)

    return to_token_units(maker), to_token_units(taker)


def generate_salt_from_key(idempotency_key: Optional[str]) -> int:
    """
    Generate order salt.

    Random salt by default. With an idempotency key the salt comes from the
    SHA-256 of the key, so a retried submission reproduces the same order.

    Example:
        >>> generate_salt_from_key("order-42") == generate_salt_from_key("order-42")
        True
    """
    if idempotency_key is None:
        return secrets.randbits(SALT_BITS)

    hash_bytes = hashlib.sha256(idempotency_key.encode("utf-8")).digest()
    return int.from_bytes(hash_bytes, byteorder="big") >> (256 - SALT_BITS)


def _check_amount_range(maker_amount: int, taker_amount: int) -> None:
    if maker_amount > MAX_UINT256 or taker_amount > MAX_UINT256:
        raise ValidationError("Order amount exceeds the uint256 range")


def _coerce_side(side: Union[Side, str]) -> Side:
    try:
        return side if isinstance(side, Side) else Side(str(side).upper())
    except ValueError:
        raise ValidationError(f"Side must be BUY or SELL, got {side!r}") from None


def _coerce_tick_size(tick_size: Union[TickSize, str]) -> TickSize:
    try:
        return tick_size if isinstance(tick_size, TickSize) else TickSize(str(tick_size))
    except ValueError:
        raise ValidationError(
            f"Unsupported tick size {tick_size!r}, expected one of "
            f"{[t.value for t in TickSize]}"
        ) from None


class OrderSigner:
    """
    Builds and signs orders for Polymarket CLOB.

    Handles:
    - Maker/signer resolution per signature type
    - Price, size and field validation
    - Fixed-point amount conversion
    - Salt generation
    - EIP-712 signing through KeyMaterial

    Stateless between calls, safe to share across threads.
    """

    def __init__(
        self,
        key_material: KeyMaterial,
        chain_id: int = 137,
        signature_type: SignatureType = SignatureType.EOA,
        funder: Optional[str] = None,
        exchange_address: Optional[str] = None,
        neg_risk_exchange_address: Optional[str] = None,
        metrics: Optional[Metrics] = None
    ):
        """
        Initialize order signer.

        Args:
            key_material: Wallet signer
            chain_id: Chain the exchange lives on
            signature_type: Default wallet signature type
            funder: Address holding the funds (required for proxy types)
            exchange_address: Exchange override
            neg_risk_exchange_address: Neg-risk exchange override
            metrics: Optional metrics collector

        Raises:
            ValidationError: If a proxy signature type has no funder
        """
        self.key_material = key_material
        self.chain_id = chain_id
        self.signature_type = SignatureType(signature_type)
        self.funder = validate_address(funder) if funder else None
        self.exchange_address = exchange_address
        self.neg_risk_exchange_address = neg_risk_exchange_address
        self.metrics = metrics

        if self.signature_type == SignatureType.EOA and self.funder is not None:
            logger.warning("Funder address ignored for EOA signature type")

        # Fail at construction rather than on the first order
        if self.signature_type != SignatureType.EOA and self.funder is None:
            raise ValidationError(
                f"Signature type {self.signature_type.name} requires a funder address"
            )

    def resolve_addresses(
        self,
        signature_type: SignatureType,
        maker_addr: Optional[str] = None
    ) -> tuple[str, str]:
        """
        Resolve (maker, signer) for a signature type.

        EOA: the wallet is both maker and signer.
        POLY_PROXY / POLY_GNOSIS_SAFE: the funder is maker, the wallet signs.

        Raises:
            ValidationError: If a proxy type has no funder
        """
        signer = self.key_material.address()

        if signature_type == SignatureType.EOA:
            if maker_addr and validate_address(maker_addr) != signer:
                logger.warning("Funder address ignored for EOA signature type")
            return signer, signer

        funder = maker_addr or self.funder
        if not funder:
            raise ValidationError(
                f"Signature type {signature_type.name} requires a funder address"
            )
        return validate_address(funder), signer

    def verifying_contract(self, neg_risk: bool) -> str:
        """Exchange address orders are signed against."""
        override = self.neg_risk_exchange_address if neg_risk else self.exchange_address
        return get_contract_config(self.chain_id, neg_risk, override).exchange

    def _sign(
        self,
        *,
        side: Side,
        token_id: int,
        maker_amount: int,
        taker_amount: int,
        expiration: int,
        nonce: int,
        fee_rate_bps: int,
        taker: str,
        signature_type: Optional[SignatureType],
        maker_addr: Optional[str],
        neg_risk: bool,
        idempotency_key: Optional[str]
    ) -> SignedOrder:
        sig_type = self.signature_type if signature_type is None else SignatureType(signature_type)
        maker, signer = self.resolve_addresses(sig_type, maker_addr)
        domain = exchange_domain(self.chain_id, self.verifying_contract(neg_risk))

        salt = generate_salt_from_key(idempotency_key)

        order = Order(
            salt=salt,
            maker=maker,
            signer=signer,
            taker=taker,
            tokenId=token_id,
            makerAmount=maker_amount,
            takerAmount=taker_amount,
            expiration=expiration,
            nonce=nonce,
            feeRateBps=fee_rate_bps,
            side=side.code,
            signatureType=int(sig_type),
        )

        try:
            signature = self.key_material.sign(typed_data_hash(order, domain))
        except SigningError:
            if self.metrics:
                self.metrics.track_signing_failure("order")
            raise

        if self.metrics:
            self.metrics.track_order_signed(side.value, int(sig_type))

        return SignedOrder(
            salt=salt,
            maker=maker,
            signer=signer,
            taker=taker,
            token_id=str(token_id),
            maker_amount=str(maker_amount),
            taker_amount=str(taker_amount),
            expiration=str(expiration),
            nonce=str(nonce),
            fee_rate_bps=str(fee_rate_bps),
            side=side,
            signature_type=sig_type,
            signature=signature,
        )

    def sign_order(
        self,
        args: OrderArgs,
        signature_type: Optional[SignatureType] = None,
        maker_addr: Optional[str] = None,
        options: Optional[CreateOrderOptions] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Build and sign a limit order.

        Args:
            args: Order parameters
            signature_type: Override the signer's default signature type
            maker_addr: Override the funder address (proxy types)
            options: Tick size and neg-risk flag for the market
            idempotency_key: Optional key for deterministic salt generation
                           (prevents duplicate orders on retry)

        Returns:
            Signed order

        Raises:
            ValidationError: If order parameters are invalid
            ConfigurationError: If no exchange is known for the chain
            SigningError: If signing fails
        """
        options = options or CreateOrderOptions()
        tick_size = _coerce_tick_size(options.tick_size)
        round_config = tick_size.round_config

        side = _coerce_side(args.side)
        token_id = validate_token_id(args.token_id)
        price = validate_price(args.price, tick_size)
        size = validate_size(args.size, round_config.size)
        fee_rate_bps = validate_uint(args.fee_rate_bps, "fee_rate_bps")
        nonce = validate_uint(args.nonce, "nonce")
        expiration = validate_uint(args.expiration, "expiration")
        taker = validate_address(args.taker or ZERO_ADDRESS)

        maker_amount, taker_amount = get_order_amounts(side, size, price, round_config)
        if maker_amount <= 0 or taker_amount <= 0:
            raise ValidationError(
                f"Order {side.value} {size} @ {price} rounds to a zero amount"
            )
        _check_amount_range(maker_amount, taker_amount)

        signed = self._sign(
            side=side,
            token_id=token_id,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=expiration,
            nonce=nonce,
            fee_rate_bps=fee_rate_bps,
            taker=taker,
            signature_type=signature_type,
            maker_addr=maker_addr,
            neg_risk=options.neg_risk,
            idempotency_key=idempotency_key,
        )

        logger.info(
            f"Signed order: {side.value} {size} @ {price} "
            f"(token={args.token_id}, nonce={nonce})"
        )
        return signed

    def sign_market_order(
        self,
        args: MarketOrderArgs,
        signature_type: Optional[SignatureType] = None,
        maker_addr: Optional[str] = None,
        options: Optional[CreateOrderOptions] = None,
        idempotency_key: Optional[str] = None
    ) -> SignedOrder:
        """
        Build and sign a market order (expiration always 0).

        BUY amount is collateral to spend, SELL amount is shares to sell.
        The price is the worst acceptable price.
        """
        options = options or CreateOrderOptions()
        tick_size = _coerce_tick_size(options.tick_size)
        round_config = tick_size.round_config

        side = _coerce_side(args.side)
        token_id = validate_token_id(args.token_id)
        price = validate_price(args.price, tick_size)
        amount = validate_size(args.amount, round_config.size)
        fee_rate_bps = validate_uint(args.fee_rate_bps, "fee_rate_bps")
        nonce = validate_uint(args.nonce, "nonce")
        taker = validate_address(args.taker or ZERO_ADDRESS)

        maker_amount, taker_amount = get_market_order_amounts(side, amount, price, round_config)
        if maker_amount <= 0 or taker_amount <= 0:
            raise ValidationError(
                f"Market order {side.value} {amount} @ {price} rounds to a zero amount"
            )
        _check_amount_range(maker_amount, taker_amount)

        signed = self._sign(
            side=side,
            token_id=token_id,
            maker_amount=maker_amount,
            taker_amount=taker_amount,
            expiration=0,
            nonce=nonce,
            fee_rate_bps=fee_rate_bps,
            taker=taker,
            signature_type=signature_type,
            maker_addr=maker_addr,
            neg_risk=options.neg_risk,
            idempotency_key=idempotency_key,
        )

        logger.info(
            f"Signed market order: {side.value} {amount} @ {price} "
            f"(token={args.token_id}, nonce={nonce})"
        )
        return signed
