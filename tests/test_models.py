"""
Unit tests for the Vm and Hypervisor models.

Tests cover:
- Vm validation and dict conversion
- Fit checks and projected load (no side effects)
- Adding VMs: load bookkeeping, order, capacity guard
- Reset and capacity ordering
"""

import pytest

from distribute_vms.core.models import (
    CapacityExceededError,
    Hypervisor,
    PlacementError,
    Vm,
)


class TestVm:
    def test_negative_ram_rejected(self):
        with pytest.raises(ValueError):
            Vm(id="bad", ram=-1)

    def test_zero_ram_allowed(self):
        assert Vm(id="empty", ram=0).ram == 0

    def test_immutable(self):
        vm = Vm(id="vm1", ram=64)
        with pytest.raises(AttributeError):
            vm.ram = 128

    def test_dict_conversion(self):
        vm = Vm(id="vm1", ram=64)
        assert vm.to_dict() == {"id": "vm1", "ram": 64}
        assert Vm.from_dict({"id": "vm1", "ram": 64}) == vm


class TestHypervisorLoad:
    def test_new_hypervisor_is_free(self):
        hv = Hypervisor("hv1", 100)
        assert hv.is_free
        assert hv.current_load_absolute == 0
        assert hv.current_load_percent == 0.0
        assert hv.vms == []

    @pytest.mark.parametrize("max_ram", [0, -10])
    def test_non_positive_capacity_rejected(self, max_ram):
        with pytest.raises(ValueError):
            Hypervisor("hv1", max_ram)

    def test_fits_boundary(self):
        hv = Hypervisor("hv1", 100)
        hv.add_vm(Vm("a", 60))
        assert hv.fits(Vm("b", 40))
        assert not hv.fits(Vm("c", 41))

    def test_load_after_adding_is_pure(self):
        hv = Hypervisor("hv1", 200)
        hv.add_vm(Vm("a", 50))
        assert hv.load_after_adding(Vm("b", 30)) == pytest.approx(40.0)
        assert hv.current_load_absolute == 50
        assert hv.current_load_percent == pytest.approx(25.0)
        assert len(hv.vms) == 1

    def test_add_vm_updates_load(self):
        hv = Hypervisor("hv1", 300)
        hv.add_vm(Vm("a", 100))
        hv.add_vm(Vm("b", 50))
        assert hv.current_load_absolute == 150
        assert hv.current_load_percent == pytest.approx(50.0, abs=1e-9)
        assert hv.free_ram == 150
        assert not hv.is_free

    def test_vms_keep_insertion_order(self):
        hv = Hypervisor("hv1", 1000)
        for vm_id, ram in [("z", 10), ("a", 300), ("m", 5)]:
            hv.add_vm(Vm(vm_id, ram))
        assert [vm.id for vm in hv.vms] == ["z", "a", "m"]

    def test_vms_returns_copy(self):
        hv = Hypervisor("hv1", 100)
        hv.add_vm(Vm("a", 10))
        hv.vms.append(Vm("b", 10))
        assert len(hv.vms) == 1

    def test_overflow_raises(self):
        hv = Hypervisor("hv1", 100)
        hv.add_vm(Vm("a", 90))
        with pytest.raises(CapacityExceededError, match="hv1.*Vm b"):
            hv.add_vm(Vm("b", 20))
        # state untouched
        assert hv.current_load_absolute == 90
        assert [vm.id for vm in hv.vms] == ["a"]

    def test_overflow_is_placement_error(self):
        assert issubclass(CapacityExceededError, PlacementError)

    def test_reset(self):
        hv = Hypervisor("hv1", 100)
        hv.add_vm(Vm("a", 40))
        hv.reset()
        assert hv.is_free
        assert hv.current_load_percent == 0.0
        assert hv.vms == []

    def test_to_dict(self):
        hv = Hypervisor("hv1", 100)
        hv.add_vm(Vm("a", 40))
        assert hv.to_dict() == {"vms": [{"id": "a", "ram": 40}]}


class TestHypervisorOrdering:
    def test_sorted_by_capacity(self, small_pool):
        assert [hv.id for hv in sorted(small_pool)] == ["hv-small", "hv-medium", "hv-large"]

    def test_equal_capacity_not_less(self):
        assert not Hypervisor("a", 100) < Hypervisor("b", 100)
