"""
tests/unit/test_chain.py - Tests for the simulated host chain (chains/)

Covers:
- Block and clock progression
- Token balances and allowances
- Nested atomic transactions
- Fixed-rate venue and flash lender behaviour
"""

import pytest

from chains import Chain, FlashLender, RateVenue
from core.constants import EventName, GENESIS_TIMESTAMP
from core.exceptions import ErrorCode, LedgerError, SealedArbError, VenueRevertError

ETHER = 10 ** 18


@pytest.fixture
def chain():
    return Chain()


@pytest.fixture
def tokens(chain):
    return chain.tokens


@pytest.fixture
def weth(tokens):
    return tokens.create_token("WETH", 18)


@pytest.fixture
def usdc(tokens):
    return tokens.create_token("USDC", 6)


class TestClock:

    def test_genesis(self, chain):
        assert chain.block_number == 1
        assert chain.timestamp == GENESIS_TIMESTAMP

    def test_mine_advances_height_and_time(self, chain):
        assert chain.mine(3) == 4
        assert chain.timestamp == GENESIS_TIMESTAMP + 36

    def test_mine_custom_block_time(self, chain):
        chain.mine(2, seconds_per_block=0)
        assert chain.block_number == 3
        assert chain.timestamp == GENESIS_TIMESTAMP

    def test_advance_time(self, chain):
        chain.advance_time(100)
        assert chain.timestamp == GENESIS_TIMESTAMP + 100
        assert chain.block_number == 1

    def test_negative_rejected(self, chain):
        with pytest.raises(ValueError):
            chain.mine(-1)
        with pytest.raises(ValueError):
            chain.advance_time(-1)

    def test_new_address_unique(self, chain):
        first = chain.new_address("trader")
        second = chain.new_address("trader")
        assert first != second
        assert first.startswith("0x") and len(first) == 42
        assert first == first.lower()


class TestTokenLedger:

    def test_metadata(self, tokens, usdc):
        assert tokens.symbol_of(usdc) == "USDC"
        assert tokens.decimals_of(usdc) == 6
        assert tokens.info(usdc).address == usdc

    def test_unknown_token_defaults(self, tokens):
        unknown = "0x" + "99" * 20
        assert tokens.decimals_of(unknown) == 18
        assert tokens.balance_of(unknown, unknown) == 0

    def test_mint_and_transfer(self, chain, tokens, weth):
        alice, bob = chain.new_address("alice"), chain.new_address("bob")
        tokens.mint(weth, alice, 5 * ETHER)
        tokens.transfer(weth, alice, bob, 2 * ETHER)

        assert tokens.balance_of(weth, alice) == 3 * ETHER
        assert tokens.balance_of(weth, bob) == 2 * ETHER
        transfer = chain.events_named(EventName.TRANSFER)[-1]
        assert transfer.emitter == weth
        assert transfer.args == {"sender": alice, "to": bob, "amount": 2 * ETHER}

    def test_transfer_insufficient_balance(self, chain, tokens, weth):
        alice, bob = chain.new_address("alice"), chain.new_address("bob")
        tokens.mint(weth, alice, 1)
        with pytest.raises(LedgerError) as exc_info:
            tokens.transfer(weth, alice, bob, 2)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_BALANCE

    def test_transfer_from_spends_allowance(self, chain, tokens, weth):
        owner, spender = chain.new_address("owner"), chain.new_address("spender")
        tokens.mint(weth, owner, 10)
        tokens.approve(weth, owner, spender, 6)
        tokens.transfer_from(weth, spender=spender, owner=owner, to=spender, amount=4)

        assert tokens.allowance(weth, owner, spender) == 2
        assert tokens.balance_of(weth, spender) == 4

    def test_transfer_from_over_allowance(self, chain, tokens, weth):
        owner, spender = chain.new_address("owner"), chain.new_address("spender")
        tokens.mint(weth, owner, 10)
        tokens.approve(weth, owner, spender, 3)
        with pytest.raises(LedgerError) as exc_info:
            tokens.transfer_from(weth, spender=spender, owner=owner, to=spender, amount=4)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_ALLOWANCE

    def test_negative_amount_rejected(self, chain, tokens, weth):
        with pytest.raises(SealedArbError) as exc_info:
            tokens.mint(weth, chain.new_address(), -1)
        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT


class TestAtomic:

    def test_success_keeps_changes(self, chain, tokens, weth):
        alice = chain.new_address("alice")
        with chain.atomic():
            tokens.mint(weth, alice, 5)
        assert tokens.balance_of(weth, alice) == 5

    def test_failure_restores_balances_and_events(self, chain, tokens, weth):
        alice, bob = chain.new_address("alice"), chain.new_address("bob")
        tokens.mint(weth, alice, 5)
        events_before = len(chain.events)

        with pytest.raises(LedgerError):
            with chain.atomic():
                tokens.transfer(weth, alice, bob, 3)
                tokens.transfer(weth, alice, bob, 3)

        assert tokens.balance_of(weth, alice) == 5
        assert tokens.balance_of(weth, bob) == 0
        assert len(chain.events) == events_before

    def test_nested_inner_failure_keeps_outer(self, chain, tokens, weth):
        alice, bob = chain.new_address("alice"), chain.new_address("bob")
        tokens.mint(weth, alice, 10)

        with chain.atomic():
            tokens.transfer(weth, alice, bob, 1)
            with pytest.raises(RuntimeError):
                with chain.atomic():
                    tokens.transfer(weth, alice, bob, 4)
                    raise RuntimeError("inner")
            assert chain.in_transaction

        assert not chain.in_transaction
        assert tokens.balance_of(weth, bob) == 1

    def test_height_not_rolled_back(self, chain):
        with pytest.raises(RuntimeError):
            with chain.atomic():
                chain.mine(2)
                raise RuntimeError("boom")
        assert chain.block_number == 3

    def test_registered_component_restored(self, chain):
        class Counter:
            def __init__(self):
                self.value = 0

            def snapshot_state(self):
                return self.value

            def restore_state(self, snapshot):
                self.value = snapshot

        counter = Counter()
        chain.register(counter)
        chain.register(counter)

        with pytest.raises(KeyError):
            with chain.atomic():
                counter.value = 42
                raise KeyError("boom")
        assert counter.value == 0


class TestRateVenue:

    def test_quote(self, chain, weth, usdc):
        venue = RateVenue(chain, name="v")
        venue.set_exchange_rate(weth, usdc, 2000 * 10 ** 6)
        assert venue.get_amounts_out(ETHER, [weth, usdc]) == [ETHER, 2000 * 10 ** 6]

    def test_unsupported_pair(self, chain, weth, usdc):
        venue = RateVenue(chain, name="v")
        with pytest.raises(VenueRevertError, match="Pair not supported"):
            venue.get_amounts_out(ETHER, [weth, usdc])

    def test_swap_moves_tokens(self, chain, tokens, weth, usdc):
        venue = RateVenue(chain, name="v")
        venue.set_exchange_rate(weth, usdc, 2000 * 10 ** 6)
        trader = chain.new_address("trader")
        tokens.mint(weth, trader, ETHER)
        tokens.mint(usdc, venue.address, 10_000 * 10 ** 6)
        tokens.approve(weth, trader, venue.address, ETHER)

        amounts = venue.swap_exact_tokens_for_tokens(
            trader, ETHER, 1, [weth, usdc], trader, chain.timestamp
        )

        assert amounts[-1] == 2000 * 10 ** 6
        assert tokens.balance_of(usdc, trader) == 2000 * 10 ** 6
        assert tokens.balance_of(weth, venue.address) == ETHER

    def test_swap_reverts(self, chain, tokens, weth, usdc):
        venue = RateVenue(chain, name="v")
        venue.set_exchange_rate(weth, usdc, 2000 * 10 ** 6)
        trader = chain.new_address("trader")

        with pytest.raises(VenueRevertError, match="Transaction expired"):
            venue.swap_exact_tokens_for_tokens(trader, ETHER, 1, [weth, usdc], trader, chain.timestamp - 1)
        with pytest.raises(VenueRevertError, match="Insufficient output amount"):
            venue.swap_exact_tokens_for_tokens(trader, ETHER, 3000 * 10 ** 6, [weth, usdc], trader, chain.timestamp)
        with pytest.raises(VenueRevertError, match="Insufficient liquidity"):
            venue.swap_exact_tokens_for_tokens(trader, ETHER, 1, [weth, usdc], trader, chain.timestamp)

    def test_deployed(self, chain):
        venue = RateVenue(chain, name="v")
        assert chain.contract_at(venue.address) is venue
        with pytest.raises(VenueRevertError):
            chain.contract_at("0x" + "99" * 20)


class Borrower:
    """Minimal flash loan receiver."""

    def __init__(self, chain, weth, repay=True, result=True):
        self.chain = chain
        self.weth = weth
        self.address = chain.new_address("borrower")
        self.repay = repay
        self.result = result
        self.seen = None

    def execute_operation(self, caller, asset, amount, premium, initiator, params):
        self.seen = (caller, asset, amount, premium, initiator, params)
        if self.repay:
            self.chain.tokens.approve(asset, self.address, caller, amount + premium)
        return self.result


class TestFlashLender:

    def test_premium(self, chain):
        assert FlashLender(chain).premium_for(10 * ETHER) == 9 * 10 ** 15

    def test_loan_repaid(self, chain, tokens, weth):
        lender = FlashLender(chain)
        tokens.mint(weth, lender.address, 100 * ETHER)
        borrower = Borrower(chain, weth)
        tokens.mint(weth, borrower.address, ETHER)

        premium = lender.flash_loan_simple(borrower, weth, 10 * ETHER, b"data", initiator=borrower.address)

        assert premium == 9 * 10 ** 15
        assert borrower.seen == (lender.address, weth, 10 * ETHER, premium, borrower.address, b"data")
        assert tokens.balance_of(weth, lender.address) == 100 * ETHER + premium
        assert len(chain.events_named(EventName.FLASH_LOAN)) == 1

    def test_callback_false(self, chain, tokens, weth):
        lender = FlashLender(chain)
        tokens.mint(weth, lender.address, 100 * ETHER)
        borrower = Borrower(chain, weth, result=False)

        with pytest.raises(LedgerError) as exc_info:
            lender.flash_loan_simple(borrower, weth, ETHER, b"", initiator=borrower.address)
        assert exc_info.value.code == ErrorCode.LENDER_CALLBACK_FAILED
        assert tokens.balance_of(weth, lender.address) == 100 * ETHER

    def test_no_repayment_approval(self, chain, tokens, weth):
        lender = FlashLender(chain)
        tokens.mint(weth, lender.address, 100 * ETHER)
        borrower = Borrower(chain, weth, repay=False)

        with pytest.raises(LedgerError) as exc_info:
            lender.flash_loan_simple(borrower, weth, ETHER, b"", initiator=borrower.address)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_ALLOWANCE
        assert tokens.balance_of(weth, borrower.address) == 0

    def test_premium_unaffordable(self, chain, tokens, weth):
        lender = FlashLender(chain)
        tokens.mint(weth, lender.address, 100 * ETHER)
        borrower = Borrower(chain, weth)

        with pytest.raises(LedgerError) as exc_info:
            lender.flash_loan_simple(borrower, weth, ETHER, b"", initiator=borrower.address)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_BALANCE

    def test_insufficient_liquidity(self, chain, tokens, weth):
        lender = FlashLender(chain)
        borrower = Borrower(chain, weth)
        with pytest.raises(LedgerError) as exc_info:
            lender.flash_loan_simple(borrower, weth, ETHER, b"", initiator=borrower.address)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_BALANCE
