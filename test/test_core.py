import ckbdeploy
import pyckb
import pytest


def test_prikey_decode():
    assert ckbdeploy.core.prikey_decode('0x01') == pyckb.core.PriKey(1)
    assert ckbdeploy.core.prikey_decode('ff') == pyckb.core.PriKey(0xff)
    with pytest.raises(ckbdeploy.error.SigningError):
        ckbdeploy.core.prikey_decode('0xzz')
    with pytest.raises(ckbdeploy.error.SigningError):
        ckbdeploy.core.prikey_decode('0x00')
    with pytest.raises(ckbdeploy.error.SigningError):
        ckbdeploy.core.prikey_decode(f'{pyckb.secp256k1.N:064x}')


def test_hex_decode():
    assert ckbdeploy.core.hex_decode('0x0102') == bytearray([1, 2])
    assert ckbdeploy.core.hex_decode('0x') == bytearray()
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.hex_decode('0x012')


def test_json_decode():
    out_point = pyckb.core.OutPoint(bytearray([0xaa] * 32), 1)
    assert ckbdeploy.core.json_decode(pyckb.core.OutPoint, out_point.json()) == out_point
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.json_decode(pyckb.core.OutPoint, {'tx_hash': '0xzz', 'index': '0x0'})
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.json_decode(pyckb.core.OutPoint, {'index': '0x0'})


def test_sign():
    prikey = pyckb.core.PriKey(0x1234)
    data = pyckb.core.hash(bytearray(b'ckb'))
    sig = ckbdeploy.core.sign(prikey, data)
    assert len(sig) == 65
    assert ckbdeploy.core.sign(prikey, data) == sig
    m = pyckb.secp256k1.Fr(int.from_bytes(data))
    r = pyckb.secp256k1.Fr(int.from_bytes(sig[:32]))
    s = pyckb.secp256k1.Fr(int.from_bytes(sig[32:64]))
    pubkey = prikey.pubkey()
    assert pyckb.ecdsa.verify(pubkey.pt(), m, r, s)
    assert pyckb.core.PubKey.pt_decode(pyckb.ecdsa.pubkey(m, r, s, sig[64])) == pubkey
    assert ckbdeploy.core.sign(pyckb.core.PriKey(0x1235), data) != sig
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.sign(prikey, bytearray(31))


def test_sighash_all():
    tx = pyckb.core.Transaction(pyckb.core.RawTransaction(0, [], [], [
        pyckb.core.CellInput(0, pyckb.core.OutPoint(bytearray(32), 0)),
    ], [], []), [pyckb.core.WitnessArgs(bytearray(65), None, None).molecule()])
    b = bytearray()
    b.extend(tx.raw.hash())
    b.extend(len(tx.witnesses[0]).to_bytes(8, 'little'))
    b.extend(tx.witnesses[0])
    assert ckbdeploy.core.sighash_all(tx, 0, []) == pyckb.core.hash(b)
    tx.witnesses[0] = pyckb.core.WitnessArgs(bytearray([1] * 65), None, None).molecule()
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.sighash_all(tx, 0, [])


def test_occupied():
    lock = pyckb.core.Script(bytearray(32), pyckb.core.script_hash_type_type, bytearray(20))
    output = pyckb.core.CellOutput(0, lock, None)
    assert ckbdeploy.core.occupied(output, bytearray(100)) == 161 * ckbdeploy.core.ckbytes
    output.type = ckbdeploy.core.type_id_script(pyckb.core.CellInput(0, pyckb.core.OutPoint(bytearray(32), 0)), 0)
    assert ckbdeploy.core.occupied(output, bytearray(100)) == 226 * ckbdeploy.core.ckbytes


def test_type_id_script():
    cell_input = pyckb.core.CellInput(0, pyckb.core.OutPoint(bytearray([0xaa] * 32), 3))
    assert len(cell_input.molecule()) == 44
    a = ckbdeploy.core.type_id_script(cell_input, 0)
    b = ckbdeploy.core.type_id_script(cell_input, 0)
    assert a == b
    assert a.molecule() == b.molecule()
    assert a.code_hash.hex() == '00000000000000000000000000000000000000000000000000545950455f4944'
    assert a.hash_type == pyckb.core.script_hash_type_type
    assert a.args == pyckb.core.hash(cell_input.molecule() + bytearray(8))
    assert ckbdeploy.core.type_id_script(cell_input, 1) != a
    other = pyckb.core.CellInput(0, pyckb.core.OutPoint(bytearray([0xaa] * 32), 4))
    assert ckbdeploy.core.type_id_script(other, 0) != a


def test_type_id_script_malformed():
    # Rejected by explicit checks, so the error is the same with or without python -O.
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.type_id_script(pyckb.core.CellInput(0, pyckb.core.OutPoint(bytearray(32), 1 << 32)), 0)
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.type_id_script(pyckb.core.CellInput(1 << 64, pyckb.core.OutPoint(bytearray(32), 0)), 0)
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.type_id_script(pyckb.core.CellInput(0, pyckb.core.OutPoint(bytearray(32), 0)), -1)
    out_point = pyckb.core.OutPoint(bytearray(32), 0)
    out_point.tx_hash = bytearray(31)
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.type_id_script(pyckb.core.CellInput(0, out_point), 0)


def test_dep_group():
    out_points = [
        pyckb.core.OutPoint(bytearray([0xaa] * 32), 0),
        pyckb.core.OutPoint(bytearray([0xbb] * 32), 1),
        pyckb.core.OutPoint(bytearray([0xaa] * 32), 2),
    ]
    data = ckbdeploy.core.dep_group_encode(out_points)
    assert len(data) == 4 + 36 * 3
    assert data[:4] == bytearray([3, 0, 0, 0])
    assert data[4:40] == out_points[0].molecule()
    assert ckbdeploy.core.dep_group_decode(data) == out_points
    assert ckbdeploy.core.dep_group_encode([]) == bytearray(4)
    assert ckbdeploy.core.dep_group_decode(bytearray(4)) == []


def test_dep_group_malformed():
    data = ckbdeploy.core.dep_group_encode([pyckb.core.OutPoint(bytearray(32), 0)])
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.dep_group_decode(data[:-1])
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.dep_group_decode(bytearray(3))
    with pytest.raises(ckbdeploy.error.CodecError):
        ckbdeploy.core.dep_group_encode([pyckb.core.OutPoint(bytearray(32), 1 << 32)])
