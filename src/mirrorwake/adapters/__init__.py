"""外部协作者适配器：摄像头帧来源与电源命令执行。"""
