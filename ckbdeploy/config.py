import ckbdeploy.core
import ckbdeploy.error
import ckbdeploy.rpc
import pyckb.config
import pyckb.core
import typing
import yaml

ObjectDict = pyckb.config.ObjectDict


def system(client: ckbdeploy.rpc.Client) -> ObjectDict:
    # Well-known system scripts live in the genesis block. The secp256k1_blake160 code is the second output of the
    # cellbase and is referenced through its type script hash; the dep group bundling it with secp256k1_data is the
    # first output of the second transaction.
    # See: https://github.com/nervosnetwork/ckb-system-scripts
    block = client.get_block_by_number('0x0')
    try:
        tx = block['transactions']
        code = ckbdeploy.core.json_decode(pyckb.core.Script, tx[0]['outputs'][1]['type'])
        dep_tx_hash = ckbdeploy.core.hex_decode(tx[1]['hash'])
    except (KeyError, IndexError, TypeError) as e:
        raise ckbdeploy.error.CodecError(f'load system script: malformed genesis block: {e!r}') from e
    return ObjectDict({
        'secp256k1_blake160': ObjectDict({
            'code_hash': code.hash(),
            'hash_type': pyckb.core.script_hash_type_type,
            'cell_dep': ObjectDict({
                'out_point': ObjectDict({
                    'tx_hash': dep_tx_hash,
                    'index': 0,
                }),
                'dep_type': ckbdeploy.core.dep_type_dep_group,
            }),
        }),
    })


class Config:
    # Settings shared by every command. One instance lives for exactly one invocation.
    fee_rate = 1000
    dust = 61

    def __init__(
        self,
        url: str,
        indexer_url: str,
        key: str,
        collector: str = 'indexer',
        fee_rate: typing.Optional[int] = None,
        dust: typing.Optional[int] = None,
        wait: bool = False,
        dry_run: bool = False,
    ) -> None:
        self.url = url
        self.indexer_url = indexer_url
        self.key = key
        self.collector = collector
        self.fee_rate = self.fee_rate if fee_rate is None else fee_rate
        self.dust = self.dust if dust is None else dust
        self.wait = wait
        self.dry_run = dry_run

    def __repr__(self) -> str:
        # The key is left out on purpose.
        return f'{self.__class__.__name__}(url={self.url}, indexer_url={self.indexer_url})'


class DeployConfig(Config):
    fee_rate = 1100
    # The two commands disagree on the change threshold: deploy skips a change cell unless at least 61 CKB
    # are left, dep_group only requires 61 shannons.
    dust = 61 * ckbdeploy.core.ckbytes

    def __init__(self, url: str, indexer_url: str, key: str, binary: str, method: str = '', **kwargs) -> None:
        super().__init__(url, indexer_url, key, **kwargs)
        self.binary = binary
        self.method = method

    @property
    def type_id(self) -> bool:
        return self.method == 'typeID'


class DepGroupConfig(Config):
    fee_rate = 1000
    dust = 61

    def __init__(self, url: str, indexer_url: str, key: str, file: str = 'dep_group.yaml', **kwargs) -> None:
        super().__init__(url, indexer_url, key, **kwargs)
        self.file = file


def dep_group_load(path: str) -> typing.List[pyckb.core.OutPoint]:
    # The file holds an ordered list of records:
    #
    #   - txHash: 0x...
    #     index: 0
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ckbdeploy.error.IoError(f'read {path}: {e}') from e
    except yaml.YAMLError as e:
        raise ckbdeploy.error.CodecError(f'decode {path}: {e}') from e
    if not isinstance(data, list):
        raise ckbdeploy.error.CodecError(f'decode {path}: want a list of {{txHash, index}} records')
    r = []
    for i, e in enumerate(data):
        if not isinstance(e, dict) or 'txHash' not in e or 'index' not in e:
            raise ckbdeploy.error.CodecError(f'decode {path}: record {i} needs txHash and index')
        tx_hash = e['txHash']
        # YAML 1.1 resolves an unquoted 0x... scalar to an integer.
        if isinstance(tx_hash, int) and not isinstance(tx_hash, bool) and 0 <= tx_hash < 1 << 256:
            tx_hash = bytearray(tx_hash.to_bytes(32))
        elif isinstance(tx_hash, str):
            tx_hash = ckbdeploy.core.hex_decode(tx_hash)
        else:
            raise ckbdeploy.error.CodecError(f'decode {path}: record {i} txHash is not a hex string')
        if len(tx_hash) != 32:
            raise ckbdeploy.error.CodecError(f'decode {path}: record {i} txHash is not 32 bytes')
        index = e['index']
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= 0xffffffff:
            raise ckbdeploy.error.CodecError(f'decode {path}: record {i} index is not a u32')
        r.append(pyckb.core.OutPoint(tx_hash, index))
    return r
