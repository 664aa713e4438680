"""输出相关模块"""
