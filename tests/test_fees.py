import pytest

from mandate_intake.fees import Amounts, calculate_fee


@pytest.mark.parametrize("values,total,fee,net", [
    ([], 0, 100, -100),
    ([2000], 2000, 200, 1800),
    ([500], 500, 100, 400),
    ([1000], 1000, 100, 900),
    ([600, 900, 500], 2000, 200, 1800),
])
def test_fee_table(values, total, fee, net):
    amounts = calculate_fee(values)
    assert amounts.total_assets == pytest.approx(total)
    assert amounts.fee == pytest.approx(fee)
    assert amounts.net_amount == pytest.approx(net)


def test_missing_and_non_numeric_values_count_as_zero():
    amounts = calculate_fee([1500, None, "abc", "500", True, float("nan")])
    assert amounts.total_assets == pytest.approx(2000)
    assert amounts.fee == pytest.approx(200)


def test_to_dict_uses_wire_names():
    assert calculate_fee([2000]).to_dict() == pytest.approx(
        {"totalAssets": 2000, "fee": 200, "netAmount": 1800}
    )


def test_amounts_is_immutable():
    amounts = Amounts(total_assets=1, fee=100, net_amount=-99)
    with pytest.raises(Exception):
        amounts.fee = 0
