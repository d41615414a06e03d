"""Tests for the address index registry and chain locks."""

import asyncio

import pytest

from walletsigner.errors import DuplicateAddressError, LockTimeoutError, UnsupportedChainError
from walletsigner.ledger import AddressIndexRegistry
from walletsigner.utils import ChainLock, ChainLockRegistry


class TestAddressIndexRegistry:
    """Tests for index allocation and record uniqueness."""

    @pytest.mark.asyncio
    async def test_first_index_is_zero(self, registry):
        assert await registry.allocate_next_index("evm") == 0

    @pytest.mark.asyncio
    async def test_next_index_is_max_plus_one(self, registry):
        await registry.record_address("0x" + "11" * 20, "m/44'/60'/0'/0/0", 0, "evm")
        await registry.record_address("0x" + "22" * 20, "m/44'/60'/0'/0/1", 1, "evm")

        assert await registry.allocate_next_index("evm") == 2
        # Other chains are independent
        assert await registry.allocate_next_index("solana") == 0

    @pytest.mark.asyncio
    async def test_next_index_follows_max_not_count(self, registry):
        await registry.record_address("0x" + "11" * 20, "m/44'/60'/0'/0/4", 4, "evm")

        assert await registry.allocate_next_index("evm") == 5

    @pytest.mark.asyncio
    async def test_record_and_find(self, registry):
        address = "0x" + "ab" * 20
        record = await registry.record_address(address, "m/44'/60'/0'/0/0", 0, "evm")

        assert record.id is not None
        assert record.index == 0
        assert record.created_at is not None

        found = await registry.find_by_address(address)
        assert found.path == "m/44'/60'/0'/0/0"
        assert found.chain_type == "evm"

    @pytest.mark.asyncio
    async def test_find_hex_address_in_any_case(self, registry):
        address = "0x9858EfFD232B4033E47d90003D41EC34EcaEda94"
        await registry.record_address(address, "m/44'/60'/0'/0/0", 0, "evm")

        found = await registry.find_by_address(address.lower())
        assert found is not None
        assert found.address == address

    @pytest.mark.asyncio
    async def test_find_unknown_address(self, registry):
        assert await registry.find_by_address("0x" + "00" * 20) is None

    @pytest.mark.asyncio
    async def test_duplicate_address_rejected(self, registry):
        address = "0x" + "11" * 20
        await registry.record_address(address, "m/44'/60'/0'/0/0", 0, "evm")

        with pytest.raises(DuplicateAddressError):
            await registry.record_address(address, "m/44'/60'/0'/0/1", 1, "evm")

    @pytest.mark.asyncio
    async def test_duplicate_index_rejected_without_overwrite(self, registry):
        first = "0x" + "11" * 20
        await registry.record_address(first, "m/44'/60'/0'/0/0", 0, "evm")

        with pytest.raises(DuplicateAddressError):
            await registry.record_address("0x" + "22" * 20, "m/44'/60'/0'/0/0", 0, "evm")

        # Original record is untouched
        record = await registry.find_first("evm")
        assert record.address == first
        assert await registry.count_by_chain() == {"evm": 1}

    @pytest.mark.asyncio
    async def test_unserialized_race_surfaces_duplicate(self, registry):
        """Two allocations without the lock see the same index; the loser fails."""
        index_a = await registry.allocate_next_index("evm")
        index_b = await registry.allocate_next_index("evm")
        assert index_a == index_b == 0

        await registry.record_address("0x" + "aa" * 20, "m/44'/60'/0'/0/0", index_a, "evm")
        with pytest.raises(DuplicateAddressError):
            await registry.record_address("0x" + "bb" * 20, "m/44'/60'/0'/0/0", index_b, "evm")

    @pytest.mark.asyncio
    async def test_find_first_returns_lowest_index(self, registry):
        await registry.record_address("0x" + "22" * 20, "m/44'/60'/0'/0/1", 1, "evm")
        await registry.record_address("0x" + "11" * 20, "m/44'/60'/0'/0/0", 0, "evm")

        record = await registry.find_first("evm")
        assert record.index == 0
        assert await registry.find_first("solana") is None

    @pytest.mark.asyncio
    async def test_unknown_chain(self, registry):
        with pytest.raises(UnsupportedChainError):
            await registry.allocate_next_index("ripple")

    @pytest.mark.asyncio
    async def test_serialized_timeout(self, db):
        registry = AddressIndexRegistry(db, lock_timeout=0.05)

        async with registry.serialized("evm"):
            with pytest.raises(LockTimeoutError):
                async with registry.serialized("evm"):
                    pass

            # Other chains are not blocked
            async with registry.serialized("solana"):
                pass


class TestChainLocks:
    """Tests for per-chain locking."""

    def test_same_chain_same_lock(self):
        locks = ChainLockRegistry()

        assert locks.get("evm") is locks.get("evm")
        assert locks.get("evm") is not locks.get("solana")

    @pytest.mark.asyncio
    async def test_lock_released_after_context(self):
        locks = ChainLockRegistry()

        async with ChainLock(locks, "evm", operation="test"):
            assert locks.get("evm").locked()

        assert not locks.get("evm").locked()

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self):
        locks = ChainLockRegistry()

        with pytest.raises(RuntimeError):
            async with ChainLock(locks, "evm"):
                raise RuntimeError("boom")

        assert not locks.get("evm").locked()

    @pytest.mark.asyncio
    async def test_lock_serializes_access(self):
        locks = ChainLockRegistry()
        results = []

        async def task(name, delay):
            async with ChainLock(locks, "evm", timeout=10.0, operation=f"task_{name}"):
                results.append(f"{name}_start")
                await asyncio.sleep(delay)
                results.append(f"{name}_end")

        await asyncio.gather(task("A", 0.05), task("B", 0.05))

        assert results in [
            ["A_start", "A_end", "B_start", "B_end"],
            ["B_start", "B_end", "A_start", "A_end"],
        ]

    @pytest.mark.asyncio
    async def test_clear(self):
        locks = ChainLockRegistry()
        lock = locks.get("evm")
        locks.clear()

        assert locks.get("evm") is not lock
