import ckbdeploy.error
import hmac
import pyckb.core
import pyckb.denomination
import pyckb.molecule
import pyckb.secp256k1
import typing

# The smallest unit of capacity is the shannon; one CKB is 10^8 shannons.
ckbytes = pyckb.denomination.ckbytes

dep_type_code = 0
dep_type_dep_group = 1


def check(cond: bool, message: str) -> None:
    if not cond:
        raise ckbdeploy.error.CodecError(message)


def hex_decode(data: str) -> bytearray:
    # Decode a 0x-prefixed hex string as used by the JSON-RPC interface.
    if data.startswith('0x'):
        data = data[2:]
    try:
        return bytearray.fromhex(data)
    except ValueError as e:
        raise ckbdeploy.error.CodecError(f'invalid hex string {data!r}') from e


def json_decode(kind: typing.Any, data: typing.Any) -> typing.Any:
    # Decode a pyckb type from the node's JSON, reporting malformed data as a codec error.
    try:
        return kind.json_decode(data)
    except (AssertionError, IndexError, KeyError, TypeError, ValueError) as e:
        raise ckbdeploy.error.CodecError(f'decode {kind.__name__}: {e!r}') from e


def prikey_decode(data: str) -> pyckb.core.PriKey:
    try:
        n = int(data[2:] if data.startswith('0x') else data, 16)
    except ValueError as e:
        raise ckbdeploy.error.SigningError('private key is not a hex string') from e
    if not 0 < n < pyckb.secp256k1.N:
        raise ckbdeploy.error.SigningError('private key out of range')
    return pyckb.core.PriKey(n)


def nonce(prikey: pyckb.secp256k1.Fr, m: pyckb.secp256k1.Fr) -> typing.Iterator[pyckb.secp256k1.Fr]:
    # https://datatracker.ietf.org/doc/html/rfc6979#section-3.2
    x = prikey.x.to_bytes(32)
    h = m.x.to_bytes(32)
    k = bytes(32)
    v = bytes([1] * 32)
    k = hmac.digest(k, v + b'\x00' + x + h, 'sha256')
    v = hmac.digest(k, v, 'sha256')
    k = hmac.digest(k, v + b'\x01' + x + h, 'sha256')
    v = hmac.digest(k, v, 'sha256')
    while True:
        v = hmac.digest(k, v, 'sha256')
        t = int.from_bytes(v)
        if 0 < t < pyckb.secp256k1.N:
            yield pyckb.secp256k1.Fr(t)
        k = hmac.digest(k, v + b'\x00', 'sha256')
        v = hmac.digest(k, v, 'sha256')


def sign(prikey: pyckb.core.PriKey, data: bytearray) -> bytearray:
    # A 65-byte recoverable signature r || s || v. Same as pyckb.ecdsa.sign, except that k is derived from the key and
    # the message instead of drawn from the random module.
    check(len(data) == 32, f'sign: want a 32-byte message, got {len(data)}')
    d = pyckb.secp256k1.Fr(prikey.n)
    m = pyckb.secp256k1.Fr(int.from_bytes(data))
    for k in nonce(d, m):
        R = pyckb.secp256k1.G * k
        r = pyckb.secp256k1.Fr(R.x.x)
        if r.x == 0:
            continue
        s = (m + d * r) / k
        if s.x == 0:
            continue
        v = 0
        if R.y.x & 1 == 1:
            v |= 1
        if R.x.x >= pyckb.secp256k1.N:
            v |= 2
        return bytearray(r.x.to_bytes(32)) + bytearray(s.x.to_bytes(32)) + bytearray([v])


def sighash_all(tx: pyckb.core.Transaction, major: int, other: typing.List[int]) -> bytearray:
    # https://github.com/nervosnetwork/ckb-system-scripts/wiki/How-to-sign-transaction
    # The lock field of the major witness must be zero-filled while hashing.
    lock = pyckb.core.WitnessArgs.molecule_decode(tx.witnesses[major]).lock
    check(lock is not None and not any(lock), 'sighash: the first witness lock is not a placeholder')
    b = bytearray()
    b.extend(tx.raw.hash())
    for e in [major] + [e for e in other if e < len(tx.witnesses)]:
        w = tx.witnesses[e]
        b.extend(len(w).to_bytes(8, 'little'))
        b.extend(w)
    for w in tx.witnesses[len(tx.raw.inputs):]:
        b.extend(len(w).to_bytes(8, 'little'))
        b.extend(w)
    return pyckb.core.hash(b)


def script_size(script: pyckb.core.Script) -> int:
    # Occupied bytes when stored in a cell: code_hash, hash_type and the raw args.
    return 32 + 1 + len(script.args)


def occupied(output: pyckb.core.CellOutput, data: bytearray) -> int:
    # Capacity that must back the cell: 8 bytes of capacity, the scripts and the data, in shannons.
    size = 8 + script_size(output.lock) + len(data)
    if output.type:
        size += script_size(output.type)
    return size * ckbytes


def out_point_check(out_point: pyckb.core.OutPoint) -> None:
    check(len(out_point.tx_hash) == 32, f'out point: tx hash is {len(out_point.tx_hash)} bytes')
    check(0 <= out_point.index <= 0xffffffff, f'out point: index {out_point.index} is not a u32')


def type_id_script(cell_input: pyckb.core.CellInput, index: int) -> pyckb.core.Script:
    # https://github.com/nervosnetwork/rfcs/blob/master/rfcs/0022-transaction-structure/0022-transaction-structure.md#type-id
    # The args bind the cell to the first input of the creating transaction and the index of the output.
    check(0 <= cell_input.since <= 0xffffffffffffffff, f'type id: since {cell_input.since} is not a u64')
    check(0 <= index <= 0xffffffffffffffff, f'type id: output index {index} is not a u64')
    out_point_check(cell_input.previous_output)
    data = cell_input.molecule() + bytearray(index.to_bytes(8, 'little'))
    return pyckb.core.Script(pyckb.core.type_id_code_hash, pyckb.core.type_id_hash_type, pyckb.core.hash(data))


def dep_group_encode(out_points: typing.List[pyckb.core.OutPoint]) -> bytearray:
    # A dep group cell's data is a molecule OutPointVec.
    for e in out_points:
        out_point_check(e)
    return pyckb.molecule.encode_fixvec([e.molecule() for e in out_points])


def dep_group_decode(data: bytearray) -> typing.List[pyckb.core.OutPoint]:
    size = pyckb.core.OutPoint.molecule_size()
    check(len(data) >= 4, 'dep group: missing header')
    n = int.from_bytes(data[:4], 'little')
    check(len(data) == 4 + n * size, f'dep group: {n} out points do not fit {len(data) - 4} bytes')
    return [pyckb.core.OutPoint.molecule_decode(data[4 + i * size:4 + i * size + size]) for i in range(n)]
