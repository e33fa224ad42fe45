"""
SVM分类器实现。

径向基核支持向量机，训练前对特征做中心化和标准化；概率由
Platt (sigmoid) 校准得到。
"""

import numpy as np
import pandas as pd
from typing import Optional, Union
from sklearn.utils.validation import check_X_y, check_array
from sklearn.utils.multiclass import unique_labels
from sklearn.svm import SVC as _SVC
from sklearn.calibration import CalibratedClassifierCV
from sklearn.preprocessing import StandardScaler

from .base_model import BaseModel


class SVMClassifier(BaseModel):
    """
    SVM分类器包装器。

    提供与sklearn兼容的接口，并自动进行特征标准化。
    """

    model_tag = "SVM"

    def __init__(self, C: float = 1.0, kernel: str = 'rbf',
                 gamma: Union[str, float] = 'scale',
                 calibration_folds: int = 5, random_state: Optional[int] = None):
        """
        初始化SVM分类器。

        Args:
            C: 正则化参数 (cost)
            kernel: 核函数类型，默认径向基核 'rbf'
            gamma: 核函数参数
            calibration_folds: 概率校准的交叉验证折数，上限为最小类别样本数
            random_state: 随机种子
        """
        self.C = C
        self.kernel = kernel
        self.gamma = gamma
        self.calibration_folds = calibration_folds
        self.random_state = random_state

    def fit(self, X: Union[np.ndarray, pd.DataFrame], y: Union[np.ndarray, pd.Series]) -> 'SVMClassifier':
        """
        训练SVM分类器。

        Args:
            X: 特征矩阵
            y: 目标标签

        Returns:
            self
        """
        X, y = check_X_y(X, y, accept_sparse=False)

        # 获取类别信息
        self.classes_ = unique_labels(y)

        # 标准化特征
        self.scaler_ = StandardScaler()
        X_scaled = self.scaler_.fit_transform(X)

        # 校准折数不能超过最小类别的样本数
        min_class_count = int(np.bincount(np.searchsorted(self.classes_, y)).min())
        self.calibration_folds_ = max(2, min(self.calibration_folds, min_class_count))

        self.svm_classifier_ = CalibratedClassifierCV(
            estimator=_SVC(
                C=self.C,
                kernel=self.kernel,
                gamma=self.gamma,
                random_state=self.random_state,
            ),
            method='sigmoid',
            cv=self.calibration_folds_,
            ensemble=False,
        )
        self.svm_classifier_.fit(X_scaled, y)

        self.n_features_in_ = X.shape[1]
        self.is_fitted_ = True
        return self

    def predict_proba(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """
        预测概率。

        Args:
            X: 特征矩阵

        Returns:
            预测概率，列顺序与 classes_ 一致
        """
        self._check_fitted()
        X = check_array(X, accept_sparse=False)
        X_scaled = self.scaler_.transform(X)
        return self.svm_classifier_.predict_proba(X_scaled)
