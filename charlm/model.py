import torch.nn as nn

class Architecture(nn.Module):
    """Next-character model: Embedding -> LSTM -> Linear on the last step"""
    def __init__(self, num_chars: int, emb_dim: int = 64, hidden_dim: int = 128,
                 num_layers: int = 1, dropout: float = 0.0):
        super().__init__()
        self.emb = nn.Embedding(num_chars, emb_dim)
        self.rnn = nn.LSTM(emb_dim, hidden_dim, num_layers=num_layers, batch_first=True,
                           dropout=dropout if num_layers > 1 else 0.0)
        self.out = nn.Linear(hidden_dim, num_chars)
    def forward(self, x):          # x: [B, T]
        e = self.emb(x)            # [B, T, E]
        h, _ = self.rnn(e)         # [B, T, H]
        return self.out(h[:, -1])  # [B, V]
