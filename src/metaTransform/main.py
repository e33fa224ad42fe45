#!/usr/bin/env python3
"""
metaTransform - 组成数据变换比较流水线

对八种组成数据变换分别训练SVM和随机森林，在多次随机分层划分上比较AUC，
并汇总随机森林的特征重要性。
"""

import sys
import warnings
from datetime import datetime
from typing import List, Optional

from sklearn.exceptions import ConvergenceWarning

from metaTransform.cli.argument_parser import parse_arguments

warnings.filterwarnings("ignore", category=ConvergenceWarning)


def main(argv: Optional[List[str]] = None) -> int:
    """主入口函数，根据命令分发到相应的处理器。"""
    args = parse_arguments(argv)

    handlers = {
        'run': lambda a: __import__('metaTransform.pipelines.run', fromlist=['handle_run']).handle_run(a),
    }

    cmd = getattr(args, 'command', None)
    handler = handlers.get(cmd)
    if handler is None:
        raise ValueError(f"Unknown command: {cmd}. Supported commands: {', '.join(handlers.keys())}")

    start_time = datetime.now()
    sys.stdout.write(f"================================================================================\n"
                     f"metaTransform\n"
                     f"开始时间: {start_time.strftime('%Y-%m-%d %H:%M:%S')}\n"
                     f"命令: {cmd.upper()}\n"
                     f"================================================================================\n")
    sys.stdout.flush()

    try:
        handler(args)
    except KeyboardInterrupt:
        sys.stdout.write(f"\n{cmd.upper()} 命令被用户中断\n")
        return 130
    except FileNotFoundError as e:
        sys.stdout.write(f"\n文件未找到: {e}\n")
        return 2
    except ValueError as e:
        sys.stdout.write(f"\n参数错误: {e}\n")
        return 3
    except ImportError as e:
        sys.stdout.write(f"\n依赖包缺失: {e}\n")
        return 4
    except Exception as e:
        sys.stdout.write(f"\n{cmd.upper()} 命令执行失败: {type(e).__name__}: {e}\n")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    duration = datetime.now() - start_time
    sys.stdout.write(f"\n{cmd.upper()} 命令执行完成，总耗时: {duration}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
