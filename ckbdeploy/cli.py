import argparse
import ckbdeploy.config
import ckbdeploy.deployer
import ckbdeploy.error
import ckbdeploy.rpc
import sys
import typing


def parser_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-u', '--url', type=str, default='http://localhost:8114', help='RPC API server url')
    parser.add_argument('-k', '--key', type=str, required=True, help='private key in hex')
    parser.add_argument('--collector', type=str, choices=['indexer', 'scan'], default='indexer',
                        help='how to find live cells: through the indexer or by scanning every block')
    parser.add_argument('--feeRate', dest='fee_rate', type=int, help='fee rate in shannons per KB')
    parser.add_argument('--dust', type=int, help='smallest leftover in shannons that gets its own change cell')
    parser.add_argument('--wait', action='store_true', help='wait until the transaction is committed')
    parser.add_argument('--dryRun', dest='dry_run', action='store_true', help='print the transaction, do not send')


def parser_build() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='ckb-script-deployer', description='One click deploy ckb script.')
    commands = parser.add_subparsers(dest='command', required=True)

    deploy = commands.add_parser('deploy', help='deploy script', description='Deploy CKB script.')
    parser_common(deploy)
    deploy.add_argument('-i', '--indexerUrl', dest='indexer_url', type=str, default='http://localhost:8116',
                        help='ckb-indexer url')
    deploy.add_argument('-b', '--binary', type=str, required=True, help='compiled script binary file path')
    deploy.add_argument('-m', '--method', type=str, default='', help='deploy method data or typeID')

    dep_group = commands.add_parser('dep_group', help='create dep_group', description='Create dep_group transaction.')
    parser_common(dep_group)
    dep_group.add_argument('-i', '--indexUrl', dest='indexer_url', type=str, default='http://localhost:8116',
                           help='ckb-indexer url')
    dep_group.add_argument('-f', '--file', type=str, default='dep_group.yaml', help='dep_group config file path')
    return parser


def config_build(args: argparse.Namespace) -> ckbdeploy.config.Config:
    common = {
        'collector': args.collector,
        'fee_rate': args.fee_rate,
        'dust': args.dust,
        'wait': args.wait,
        'dry_run': args.dry_run,
    }
    if args.command == 'deploy':
        return ckbdeploy.config.DeployConfig(args.url, args.indexer_url, args.key, args.binary, args.method, **common)
    return ckbdeploy.config.DepGroupConfig(args.url, args.indexer_url, args.key, args.file, **common)


def main(argv: typing.Optional[typing.List[str]] = None) -> int:
    args = parser_build().parse_args(argv)
    conf = config_build(args)
    client, indexer = ckbdeploy.rpc.dial(conf.url, conf.indexer_url)
    try:
        if args.command == 'deploy':
            receipt = ckbdeploy.deployer.deploy(conf, client, indexer)
        else:
            receipt = ckbdeploy.deployer.dep_group(conf, client, indexer)
    except ckbdeploy.error.Error as e:
        print(e, file=sys.stderr)
        return 1
    if args.command == 'deploy':
        print('Deployed script info:')
        print(f'\ttxHash: 0x{receipt.tx_hash.hex()}')
        print(f'\tindex: {receipt.index}')
        print(f'\tCodeHash: 0x{receipt.code_hash.hex()}')
    else:
        print('Create dep_group info:')
        print(f'\ttxHash: 0x{receipt.tx_hash.hex()}')
        print(f'\tindex: {receipt.index}')
    return 0
