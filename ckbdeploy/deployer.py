import ckbdeploy.collector
import ckbdeploy.config
import ckbdeploy.core
import ckbdeploy.error
import ckbdeploy.rpc
import json
import pyckb.core
import typing

# Bytes occupied by a cell besides its data: 8 for the capacity and 53 for a secp256k1_blake160 lock.
cell_overhead = 61
# A type id type script: 32 bytes of code hash, 1 of hash type and 32 of args.
type_id_overhead = 65
# Collected on top of the request so that fees never eat into the deployed cell.
reserve = 1 * ckbdeploy.core.ckbytes


def capacity_request(size: int, type_id: bool) -> int:
    overhead = cell_overhead + type_id_overhead if type_id else cell_overhead
    return (size + overhead) * ckbdeploy.core.ckbytes


class Sender:
    def __init__(self, prikey: pyckb.core.PriKey, system: ckbdeploy.config.ObjectDict) -> None:
        self.prikey = prikey
        self.pubkey = self.prikey.pubkey()
        self.lock = pyckb.core.Script(
            system.secp256k1_blake160.code_hash,
            system.secp256k1_blake160.hash_type,
            pyckb.core.hash(self.pubkey.sec())[:20],
        )
        self.cell_dep = pyckb.core.CellDep.conf_decode(system.secp256k1_blake160.cell_dep)

    def __repr__(self) -> str:
        return f'Sender({self.lock!r})'


class Receipt:
    def __init__(self, tx_hash: bytearray, index: int, code_hash: typing.Optional[bytearray]) -> None:
        self.tx_hash = tx_hash
        self.index = index
        self.code_hash = code_hash


def add_inputs(tx: pyckb.core.Transaction, inputs: typing.List[pyckb.core.CellInput]) -> typing.List[int]:
    # All inputs share one lock, so they form a single script group signed through the first witness.
    group = []
    for e in inputs:
        group.append(len(tx.raw.inputs))
        tx.raw.inputs.append(e)
        if len(group) == 1:
            tx.witnesses.append(pyckb.core.WitnessArgs(bytearray(65), None, None).molecule())
        else:
            tx.witnesses.append(bytearray())
    return group


def fee_calculate(tx: pyckb.core.Transaction, fee_rate: int) -> int:
    # The size of a transaction in a block includes the 4-byte offset in the block's transaction vector. Fee rate is
    # in shannons per 1000 bytes, rounded up.
    size = len(tx.molecule()) + 4
    fee = size * fee_rate // 1000
    if fee * 1000 < size * fee_rate:
        fee += 1
    return fee


def sign(tx: pyckb.core.Transaction, group: typing.List[int], prikey: pyckb.core.PriKey) -> None:
    if not group:
        raise ckbdeploy.error.SigningError('empty script group')
    major = group[0]
    try:
        sg = ckbdeploy.core.sign(prikey, ckbdeploy.core.sighash_all(tx, major, group[1:]))
    except ckbdeploy.error.CodecError as e:
        raise ckbdeploy.error.SigningError(f'sign transaction: {e!r}') from e
    tx.witnesses[major] = pyckb.core.WitnessArgs(sg, None, None).molecule()


def analyze(tx: pyckb.core.Transaction) -> None:
    # Last checks before the transaction leaves the process.
    if len(tx.raw.outputs) != len(tx.raw.outputs_data):
        raise ckbdeploy.error.CodecError('outputs and outputs data differ in length')
    for i, (output, data) in enumerate(zip(tx.raw.outputs, tx.raw.outputs_data)):
        occupied = ckbdeploy.core.occupied(output, data)
        if output.capacity < occupied:
            raise ckbdeploy.error.InsufficientFundsError(
                f'output {i} holds {output.capacity} shannons but occupies {occupied}')


def assemble(
    sender: Sender,
    collector: ckbdeploy.collector.Collector,
    payload: bytearray,
    type_id: bool,
    fee_rate: int,
    dust: int,
) -> typing.Tuple[pyckb.core.Transaction, bytearray]:
    capacity = capacity_request(len(payload), type_id)
    cells, collected = collector.collect(capacity + reserve)

    tx = pyckb.core.Transaction(pyckb.core.RawTransaction(0, [sender.cell_dep], [], [], [], []), [])
    tx.raw.outputs.append(pyckb.core.CellOutput(capacity, sender.lock, None))
    tx.raw.outputs_data.append(payload)
    if type_id:
        script = ckbdeploy.core.type_id_script(pyckb.core.CellInput(0, cells[0].out_point), 0)
        tx.raw.outputs[0].type = script
        code_hash = script.hash()
    else:
        code_hash = pyckb.core.hash(payload)

    # The change cell starts empty; its capacity is only known once the fee is.
    if collected - capacity - reserve > dust:
        tx.raw.outputs.append(pyckb.core.CellOutput(0, sender.lock, None))
        tx.raw.outputs_data.append(bytearray())

    group = add_inputs(tx, [pyckb.core.CellInput(0, e.out_point) for e in cells])
    fee = fee_calculate(tx, fee_rate)
    if len(tx.raw.outputs) > 1:
        tx.raw.outputs[1].capacity = collected - capacity - fee
    else:
        tx.raw.outputs[0].capacity = collected - fee
    # A fee larger than the leftover shows up here as an output below its occupied capacity.
    analyze(tx)
    sign(tx, group, sender.prikey)
    return tx, code_hash


def broadcast(
    conf: ckbdeploy.config.Config,
    client: ckbdeploy.rpc.Client,
    tx: pyckb.core.Transaction,
) -> bytearray:
    if conf.dry_run:
        print(json.dumps(tx.json(), indent=4))
        return tx.raw.hash()
    # Scripts deployed here are unknown to the node's default outputs validator.
    tx_hash = client.send_transaction(tx.json(), 'passthrough')
    if conf.wait:
        client.wait(tx_hash)
    return ckbdeploy.core.hex_decode(tx_hash)


def sender_load(conf: ckbdeploy.config.Config, client: ckbdeploy.rpc.Client) -> Sender:
    prikey = ckbdeploy.core.prikey_decode(conf.key)
    return Sender(prikey, ckbdeploy.config.system(client))


def deploy(
    conf: ckbdeploy.config.DeployConfig,
    client: ckbdeploy.rpc.Client,
    indexer: ckbdeploy.rpc.Client,
) -> Receipt:
    try:
        with open(conf.binary, 'rb') as f:
            data = bytearray(f.read())
    except OSError as e:
        raise ckbdeploy.error.IoError(f'read script binary {conf.binary}: {e}') from e
    sender = sender_load(conf, client)
    collector = ckbdeploy.collector.new(conf.collector, client, indexer, sender.lock)
    tx, code_hash = assemble(sender, collector, data, conf.type_id, conf.fee_rate, conf.dust)
    return Receipt(broadcast(conf, client, tx), 0, code_hash)


def dep_group(
    conf: ckbdeploy.config.DepGroupConfig,
    client: ckbdeploy.rpc.Client,
    indexer: ckbdeploy.rpc.Client,
) -> Receipt:
    data = ckbdeploy.core.dep_group_encode(ckbdeploy.config.dep_group_load(conf.file))
    sender = sender_load(conf, client)
    collector = ckbdeploy.collector.new(conf.collector, client, indexer, sender.lock)
    tx, _ = assemble(sender, collector, data, False, conf.fee_rate, conf.dust)
    return Receipt(broadcast(conf, client, tx), 0, None)
