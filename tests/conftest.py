import sys
from pathlib import Path

# 未安装时也能直接从 src 导入
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))
