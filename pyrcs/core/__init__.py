"""核心模型与执行逻辑"""
